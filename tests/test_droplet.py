"""Launch options, environment sink, and sandbox path handling."""

from __future__ import annotations

from contrast_provisioner.provision.droplet import Droplet, EnvironmentVariables, JavaOpts, qualify_path


def test_java_opts_append_and_query() -> None:
    java_opts = JavaOpts(["-Xmx512m"])
    java_opts.add_system_property("contrast.override.appname", "shop")
    java_opts.add_preformatted_options("-javaagent:$PWD/agent.jar")

    assert list(java_opts) == ["-Xmx512m", "-Dcontrast.override.appname=shop", "-javaagent:$PWD/agent.jar"]
    assert "-Dcontrast.override.appname=shop" in java_opts
    assert java_opts.contains(r"contrast\.override\.appname")
    assert not java_opts.contains("contrast.application.name")
    assert java_opts.has_system_property("contrast.override.appname")
    assert not java_opts.has_system_property("contrast.override")


def test_system_property_detected_inside_preformatted_option_group() -> None:
    java_opts = JavaOpts(["-Xss1m -Dcontrast.application.name -Dfoo=bar"])
    assert java_opts.has_system_property("contrast.application.name")
    assert java_opts.has_system_property("foo")


def test_environment_variables_keep_insertion_order() -> None:
    env = EnvironmentVariables()
    env.add_environment_variable("B", "2").add_environment_variable("A", "$TMPDIR")

    assert env.keys() == ["B", "A"]
    assert env.as_lines() == ["B=2", "A=$TMPDIR"]
    assert env.as_env_vars() == "B=2 A=$TMPDIR"
    assert "A=$TMPDIR" in env


def test_qualify_path_is_pwd_relative(tmp_path) -> None:
    target = tmp_path / ".java-buildpack" / "contrast_security_agent" / "java-agent-3.4.3.jar"
    assert qualify_path(target, tmp_path) == "$PWD/.java-buildpack/contrast_security_agent/java-agent-3.4.3.jar"


def test_copy_resources_into_sandbox(tmp_path) -> None:
    resources = tmp_path / "resources"
    (resources / "contrast_security_agent" / "conf").mkdir(parents=True)
    (resources / "contrast_security_agent" / "conf" / "contrast.yaml").write_text("agent: {}\n", encoding="utf-8")
    droplet = Droplet(component_id="contrast_security_agent", root=tmp_path / "app", resources_dir=resources)

    copied = droplet.copy_resources()

    assert copied == [droplet.sandbox / "conf" / "contrast.yaml"]
    assert (droplet.sandbox / "conf" / "contrast.yaml").read_text(encoding="utf-8") == "agent: {}\n"


def test_copy_resources_without_resource_dir_is_noop(tmp_path) -> None:
    droplet = Droplet(component_id="contrast_security_agent", root=tmp_path, resources_dir=tmp_path / "missing")
    assert droplet.copy_resources() == []
    assert not droplet.sandbox.exists()

import textwrap
from pathlib import Path

import pytest

from clientexport.domain.config import GeneratorConfig
from clientexport.domain.errors import EmissionError
from clientexport.export.specs import GeneratedInterfaceSpec
from clientexport.extractors.controllers.reflector import load_types_from_source
from clientexport.orchestrator.writer import OutputWriter, WriteState
from clientexport.printer.python_printer import PythonInterfacePrinter


TEST_CONTROLLER = """
from clientexport.markers import client_export, export, get_mapping, rest_controller


@rest_controller
@export
@client_export(export_package="com.example.external")
class TestController:

    @export
    @get_mapping("/test")
    def test(self) -> str:
        return "hello"
"""


def config_for(tmp_path: Path) -> GeneratorConfig:
    return GeneratorConfig(application_name="feign-client-apt-api", export_module_path=tmp_path / "external")


def controller(src: str = TEST_CONTROLLER):
    [t] = [t for t in load_types_from_source(textwrap.dedent(src), module="com.example.api") if t.name.endswith("Controller")]
    return t


def test_first_round_writes_base_and_leaf(tmp_path: Path):
    config = config_for(tmp_path)
    outcome = OutputWriter(config).write(controller())

    root = tmp_path / "external" / "src" / "com" / "example" / "external"
    assert outcome.base_file == root / "base" / "TestClientBase.py"
    assert outcome.leaf_file == root / "TestClient.py"
    assert outcome.leaf_written is True
    assert outcome.method_count == 1
    assert outcome.state is WriteState.DONE
    assert outcome.history == [
        WriteState.NOT_STARTED,
        WriteState.BASE_WRITTEN,
        WriteState.LEAF_CHECKED,
        WriteState.DONE,
    ]

    base = outcome.base_file.read_text(encoding="utf-8")
    assert "class TestClientBase(Protocol):\n    @get_mapping('/test')\n    def test(self) -> str: ...\n" in base

    leaf = outcome.leaf_file.read_text(encoding="utf-8")
    assert "from com.example.external.base.TestClientBase import TestClientBase\n" in leaf
    assert "@remote_client(name='feign-client-apt-api')\nclass TestClient(TestClientBase, Protocol):\n" in leaf


def test_route_prefix_becomes_leaf_path(tmp_path: Path):
    src = TEST_CONTROLLER.replace(
        "@rest_controller\n", "@rest_controller\n@request_mapping('/api/tests')\n"
    ).replace("import client_export,", "import request_mapping, client_export,")
    outcome = OutputWriter(config_for(tmp_path)).write(controller(src))

    leaf = outcome.leaf_file.read_text(encoding="utf-8")
    assert "@remote_client(name='feign-client-apt-api', path='/api/tests')\n" in leaf


def test_second_round_rewrites_base_and_keeps_leaf(tmp_path: Path):
    config = config_for(tmp_path)
    first = OutputWriter(config).write(controller())
    base_bytes = first.base_file.read_bytes()

    first.leaf_file.write_text("# customized by hand\n", encoding="utf-8")
    first.base_file.write_text("stale\n", encoding="utf-8")

    second = OutputWriter(config).write(controller())

    assert second.base_file.read_bytes() == base_bytes
    assert second.leaf_file.read_text(encoding="utf-8") == "# customized by hand\n"
    assert second.leaf_written is False
    assert second.history == [WriteState.NOT_STARTED, WriteState.BASE_WRITTEN, WriteState.DONE]


class FailingPrinter:
    def __init__(self, fail_leaf_only: bool = False) -> None:
        self.fail_leaf_only = fail_leaf_only
        self.inner = PythonInterfacePrinter()

    def write(self, spec: GeneratedInterfaceSpec, source_root: Path) -> Path:
        if self.fail_leaf_only and spec.regenerated:
            return self.inner.write(spec, source_root)
        raise PermissionError(13, "Permission denied")


def test_io_failure_is_wrapped_in_emission_error(tmp_path: Path):
    writer = OutputWriter(config_for(tmp_path), printer=FailingPrinter())

    with pytest.raises(EmissionError) as exc:
        writer.write(controller())

    assert exc.value.type_name == "com.example.api.TestController"
    assert exc.value.path.name == "TestClientBase.py"
    assert isinstance(exc.value.__cause__, PermissionError)


def test_leaf_failure_does_not_roll_back_base(tmp_path: Path):
    config = config_for(tmp_path)
    writer = OutputWriter(config, printer=FailingPrinter(fail_leaf_only=True))

    with pytest.raises(EmissionError) as exc:
        writer.write(controller())

    assert exc.value.path.name == "TestClient.py"
    assert (config.source_root / "com" / "example" / "external" / "base" / "TestClientBase.py").exists()

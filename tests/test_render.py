import logging
import sys

import pytest

from helpers import component_source
from livebuild.artifacts import Artifact
from livebuild.components import ComponentLoader, evict_modules, render_to_string
from livebuild.errors import RenderError
from livebuild.render import PageRenderer


@pytest.fixture
def renderer(config, store):
    return PageRenderer(config, store)


def test_page_contains_rendered_markup(renderer, store):
    assert renderer.build()
    page = store.read(Artifact.PAGE).decode()
    assert '<div id="root"><h1>Hi</h1></div>' in page
    assert page.lstrip().startswith("<!DOCTYPE html>")
    assert '<link rel="stylesheet" href="./main.css">' in page
    assert '<script type="module" src="./client.js"></script>' in page


def test_page_embeds_reload_bootstrap(renderer, store):
    renderer.build()
    page = store.read(Artifact.PAGE).decode()
    assert "new WebSocket(scheme + window.location.host + '/ws')" in page
    assert "msg.data === 'reload'" in page
    assert "}, 2000);" in page


def test_hydration_script(renderer, store):
    renderer.build()
    script = store.read(Artifact.HYDRATION_SCRIPT).decode()
    assert "import('/src/main.py')" in script
    assert ".catch(" in script
    assert "document.getElementById('root')" in script


def test_fresh_module_after_edit(config, renderer, store):
    assert renderer.build()
    # Same length and likely the same mtime second as the first version.
    config.component_entry.write_text(component_source("<h1>Yo</h1>"))
    assert renderer.build()
    page = store.read(Artifact.PAGE).decode()
    assert "<h1>Yo</h1>" in page
    assert "<h1>Hi</h1>" not in page


def test_broken_component_keeps_previous_page(config, renderer, store, caplog):
    assert renderer.build()
    before = store.read(Artifact.PAGE)

    config.component_entry.write_text("def App(:\n")
    with caplog.at_level(logging.ERROR):
        assert not renderer.build()

    assert store.read(Artifact.PAGE) == before
    assert "Error rendering components" in caplog.text


def test_loader_generations(config):
    loader = ComponentLoader(config.src_dir)
    first = loader.load(config.component_entry)
    second = loader.load(config.component_entry)
    assert (first.generation, second.generation) == (1, 2)
    assert first.digest == second.digest
    assert first.namespace is not second.namespace
    assert first.namespace["__name__"] == f"_livebuild_main_1_{first.digest[:12]}"
    assert first.namespace["__name__"] not in sys.modules


def test_loader_requires_component(config):
    config.component_entry.write_text("VALUE = 1\n")
    with pytest.raises(RenderError, match="does not define App"):
        ComponentLoader(config.src_dir).load(config.component_entry)


def test_loader_missing_file(config):
    with pytest.raises(RenderError):
        ComponentLoader(config.src_dir).load(config.src_dir / "nope.py")


def test_evict_modules(config, monkeypatch):
    helper = config.src_dir / "livebuild_test_widgets.py"
    helper.write_text("X = 1\n")
    monkeypatch.syspath_prepend(str(config.src_dir))
    __import__("livebuild_test_widgets")
    assert "livebuild_test_widgets" in sys.modules

    assert evict_modules(config.src_dir) == ["livebuild_test_widgets"]
    assert "livebuild_test_widgets" not in sys.modules


def test_render_to_string():
    class Safe:
        def __html__(self):
            return "<b>safe</b>"

    assert render_to_string(lambda: "<i>x</i>") == "<i>x</i>"
    assert render_to_string(lambda: Safe()) == "<b>safe</b>"
    assert render_to_string(lambda: None) == ""


def test_render_to_string_wraps_errors():
    def App():
        raise ValueError("nope")

    with pytest.raises(RenderError, match="nope"):
        render_to_string(App)

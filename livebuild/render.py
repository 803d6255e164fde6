"""Render stage: component entry -> index.html + client.js."""

from __future__ import annotations

import logging

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markupsafe import Markup

from livebuild.artifacts import Artifact, ArtifactStore
from livebuild.components import ComponentLoader, render_to_string
from livebuild.errors import BuildError, RenderError
from livebuild.paths import TEMPLATES_DIR, DevConfig

log = logging.getLogger(__name__)


def get_template_env() -> Environment:
    """Create a Jinja environment for the page and script templates."""
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
    )


def render_reload_script(env: Environment, config: DevConfig) -> Markup:
    """Render the live-reload bootstrap embedded in every page."""
    template = env.get_template("reload.html")
    return Markup(
        template.render(
            reload_path=config.reload_path,
            reconnect_delay_ms=config.reconnect_delay_ms,
        )
    )


def render_document(env: Environment, config: DevConfig, markup: Markup) -> str:
    """Wrap rendered component markup in the full HTML document."""
    template = env.get_template("page.html")
    return template.render(
        page_title=config.page_title,
        stylesheet_name=config.stylesheet_name,
        hydration_name=config.hydration_name,
        mount_id=config.mount_id,
        reload_script=render_reload_script(env, config),
        markup=markup,
    )


def render_hydration_script(env: Environment, config: DevConfig) -> str:
    template = env.get_template("client.js")
    return template.render(
        client_renderer=config.client_renderer,
        component_url=config.component_url,
        mount_id=config.mount_id,
    )


class PageRenderer:
    """Render stage. Holds the versioned loader across rebuilds."""

    def __init__(self, config: DevConfig, store: ArtifactStore, loader=None):
        self.config = config
        self.store = store
        self.loader = loader or ComponentLoader(
            config.src_dir, config.component_name
        )
        self.env = get_template_env()

    def render(self) -> tuple[str, str]:
        """Return (page html, hydration script) for the current source."""
        loaded = self.loader.load(self.config.component_entry)
        log.debug(
            "Loaded %s generation %d (%s)",
            loaded.path.name,
            loaded.generation,
            loaded.digest[:12],
        )
        markup = render_to_string(loaded.component)
        try:
            page = render_document(self.env, self.config, markup)
            script = render_hydration_script(self.env, self.config)
        except TemplateError as exc:
            raise RenderError(f"Page template failed: {exc}") from exc
        return page, script

    def build(self) -> bool:
        """Run the render stage. Return True if both artifacts were written."""
        log.info("Compiling components to HTML via SSR...")
        try:
            page, script = self.render()
            page_path = self.store.write(Artifact.PAGE, page)
            log.info("Component rendered and saved to %s", page_path)
            self.store.write(Artifact.HYDRATION_SCRIPT, script)
        except BuildError as exc:
            log.error("Error rendering components: %s", exc)
            return False
        log.info("Client hydration script generated")
        return True

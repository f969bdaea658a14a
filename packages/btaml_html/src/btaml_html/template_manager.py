"""
Template loading for BTAML HTML views.

`TemplateManager` wraps Starlette's `Jinja2Templates` so that templates can
live inside several packages (the portal, its admin screens, shared
components) while an application-level `templates/` folder can still
override any of them.

Usage Lifecycle:
    1.  **Instantiation:** The manager is created by the application factory.
        It immediately scans the filesystem.
    2.  **Access:** The configured `Jinja2Templates` instance is exposed as
        `.templates`; views find the manager on `app.state.template_manager`.
    3.  **Rendering:** Views call `.templates.TemplateResponse(...)`.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Sequence

from fastapi.templating import Jinja2Templates

logger = logging.getLogger(__name__)

# Never look for templates inside these directories
_SKIP_DIRECTORIES = frozenset(
    {
        ".venv",
        "venv",
        "env",
        "site-packages",
        "__pycache__",
        "node_modules",
        ".git",
        ".tox",
        ".pytest_cache",
    }
)


class TemplateManager:
    """
    Manages Jinja2 template discovery and global context.

    **Lookup order:**
    1.  `project_root/templates`, if it exists.
    2.  Directories passed via `extra_directories`, in order.
    3.  Any other folder named `templates` below `project_root`.
    4.  The templates shipped with `btaml_html` (shared form widgets).

    Attributes:
        templates (Jinja2Templates): The configured Jinja2 environment.

    Example:
        >>> manager = TemplateManager(
        ...     extra_directories=[Path(__file__).parent / "templates"],
        ...     global_context={"site_name": "BTAML Universe"},
        ...     filters={"excerpt": generate_excerpt},
        ... )
    """

    def __init__(
        self,
        project_root: Path | str | None = None,
        extra_directories: Sequence[Path | str] | None = None,
        global_context: dict[str, Any] | None = None,
        global_functions: dict[str, Callable] | None = None,
        filters: dict[str, Callable] | None = None,
    ):
        self._directories: list[str] = []

        if extra_directories:
            for d in extra_directories:
                self._add_directory(d)

        if project_root:
            self._scan_project_directories(Path(project_root))

        # Shared widgets are the fallback for every application
        self._add_directory(Path(__file__).parent / "templates")

        logger.debug("Template directories: %s", self._directories)

        self.templates = Jinja2Templates(directory=self._directories)

        for name, value in (global_context or {}).items():
            self.templates.env.globals[name] = value
        for name, func in (global_functions or {}).items():
            self.templates.env.globals[name] = func
        for name, func in (filters or {}).items():
            self.templates.env.filters[name] = func

    @property
    def directories(self) -> list[str]:
        return list(self._directories)

    def _add_directory(self, path: Path | str) -> None:
        path_str = str(Path(path).resolve())
        if path_str not in self._directories:
            self._directories.append(path_str)

    def _scan_project_directories(self, root: Path) -> None:
        """
        Register `root/templates` first, then any nested `templates` folder.
        """
        root = root.resolve()

        root_tpl = root / "templates"
        if root_tpl.is_dir():
            root_tpl_str = str(root_tpl)
            if root_tpl_str in self._directories:
                self._directories.remove(root_tpl_str)
            self._directories.insert(0, root_tpl_str)

        for path in sorted(root.rglob("templates")):
            if not path.is_dir():
                continue
            parts = {p.lower() for p in path.parts}
            if not parts.isdisjoint(_SKIP_DIRECTORIES):
                continue
            self._add_directory(path)


__all__ = ["TemplateManager"]

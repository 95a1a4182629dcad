# devagent/core/prompt.py
"""
Prompt assembly: renders the task and the project context through the
Jinja2 templates in ``devagent/templates``.

The user payload is always laid out as: path listing, file contents, task.
The task comes last so it carries the most weight with the model.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jinja2

from .models import ProjectContext

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

ALIASES = {
    'system': 'system.md.j2',
    'user': 'user.md.j2',
    'config': 'config.yaml.j2',
    'task': 'task.md.j2',
}

_BACKTICK_RUN = re.compile(r"`{3,}")


def create_jinja_env() -> jinja2.Environment:
    loader = jinja2.FileSystemLoader(str(TEMPLATES_DIR))
    return jinja2.Environment(
        loader=loader,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )


def resolve_template_path(template: str) -> str:
    """Alias or file name, with the ``.j2`` extension completed."""
    if template in ALIASES:
        template = ALIASES[template]
    if not template.endswith('.j2'):
        template += '.j2'
    return template


def load_template(env: jinja2.Environment, template: str) -> jinja2.Template:
    path = resolve_template_path(template)
    try:
        return env.get_template(path)
    except jinja2.TemplateNotFound:
        raise FileNotFoundError(f"Template not found: {TEMPLATES_DIR / path}")


def render_template(template: str, **values: Any) -> str:
    return load_template(create_jinja_env(), template).render(**values)


def fence_for(content: str) -> str:
    """A code fence longer than any backtick run inside ``content``."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=0)
    return "`" * max(3, longest + 1)


class PromptAssembler:
    """Turns (task, context) into (system instructions, user payload)."""

    def __init__(self, max_file_chars: int = 5000):
        self.max_file_chars = max_file_chars
        self.env = create_jinja_env()

    def assemble(self, task: str, context: ProjectContext) -> Tuple[str, str]:
        system = self._render('system')
        user = self._render('user', **self._user_values(task, context))
        return system.strip(), user.strip()

    def _user_values(self, task: str, context: ProjectContext) -> Dict[str, Any]:
        files: List[Dict[str, Any]] = [
            {
                "path": f.path,
                "content": f.content,
                "truncated": f.truncated,
                "fence": fence_for(f.content),
            }
            for f in context.files
        ]
        return {
            "paths_json": json.dumps(context.paths, indent=2, ensure_ascii=False),
            "files": files,
            "task": task.strip(),
            "max_file_chars": self.max_file_chars,
        }

    def _render(self, template: str, **values: Any) -> str:
        return load_template(self.env, template).render(**values)

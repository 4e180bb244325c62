from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple
import yaml
import jinja2
import logging

logger = logging.getLogger(__name__)

USER_TEMPLATE = "user.j2"
SYSTEM_TEMPLATE = "system.j2"
PROMPT_CONFIG = "config.yaml"


@dataclass(frozen=True)
class PromptConfig:
    name: str
    version: str
    user_template: str
    system_template: Optional[str] = None #single-turn prompts have none
    stop_sequences: Optional[list[str]] = None

    @property
    def ref(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass
class _CompiledPrompt:
    config: PromptConfig
    user: jinja2.Template
    system: Optional[jinja2.Template] = field(default=None)


def _split_ref(prompt_ref: str) -> Tuple[str, str]:
    """'analysis/describe@v1' -> ('analysis/describe', 'v1')"""
    name, sep, version = prompt_ref.rpartition("@")
    if not sep or not name or not version:
        raise ValueError(f"Invalid prompt reference: {prompt_ref} (expected '<name>@<version>')")
    return name, version


class PromptManager:
    """
    Versioned Jinja2 prompts stored as ``<prompts_dir>/<name>/<version>/``.

    Each version directory holds ``user.j2`` and optionally ``system.j2`` and
    a ``config.yaml``. Templates are compiled once per reference and rendered
    with StrictUndefined, so a variable the caller forgot is an error rather
    than an empty string.
    """

    def __init__(self, prompts_dir: Path):
        self.prompts_dir = Path(prompts_dir)
        if not self.prompts_dir.is_dir():
            raise FileNotFoundError(f"Prompts dir not found: {self.prompts_dir}")

        #'is defined' checks still work under StrictUndefined
        self.jinja_env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._compiled: Dict[str, _CompiledPrompt] = {}

    def load_prompt(self, prompt_ref: str) -> PromptConfig:
        return self._compile(prompt_ref).config

    def render(self, prompt_ref: str, variables: Dict[str, Any]) -> List[Dict[str, str]]:
        """Render a prompt into chat messages: an optional system turn, then the user turn."""
        compiled = self._compile(prompt_ref)
        messages = []
        try:
            if compiled.system is not None:
                system_text = compiled.system.render(**variables)
                if system_text:
                    messages.append({"role": "system", "content": system_text})
            messages.append({"role": "user", "content": compiled.user.render(**variables)})
        except jinja2.UndefinedError as e:
            raise ValueError(f"Missing required variable in prompt {prompt_ref}: {e}") from e

        logger.debug("Rendered %s into %d message(s)", prompt_ref, len(messages))
        return messages

    def clear_cache(self):
        self._compiled.clear()
        logger.info("Cleared compiled prompts")

    def _compile(self, prompt_ref: str) -> _CompiledPrompt:
        cached = self._compiled.get(prompt_ref)
        if cached is not None:
            return cached

        name, version = _split_ref(prompt_ref)
        version_dir = self.prompts_dir / name / version
        if not version_dir.is_dir():
            raise FileNotFoundError(f"Prompt not found: {version_dir}")

        user_path = version_dir / USER_TEMPLATE
        if not user_path.exists():
            raise FileNotFoundError(f"Template file not found: {user_path}")
        user_source = user_path.read_text(encoding="utf-8")
        system_source = self._read_optional(version_dir / SYSTEM_TEMPLATE)

        settings = yaml.safe_load(self._read_optional(version_dir / PROMPT_CONFIG) or "") or {}
        config = PromptConfig(
            name=name,
            version=version,
            user_template=user_source,
            system_template=system_source,
            stop_sequences=settings.get("stop_sequences"),
        )
        compiled = _CompiledPrompt(
            config=config,
            user=self.jinja_env.from_string(user_source),
            system=self.jinja_env.from_string(system_source) if system_source is not None else None,
        )
        self._compiled[prompt_ref] = compiled
        logger.info("Loaded prompt: %s", prompt_ref)
        return compiled

    @staticmethod
    def _read_optional(path: Path) -> Optional[str]:
        return path.read_text(encoding="utf-8") if path.exists() else None

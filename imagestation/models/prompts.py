from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List
import yaml
import jinja2
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptConfig:
    #immutable prompt config
    name: str
    version: str
    system_template: str
    user_template: str
    defaults: Dict[str, Any] = field(default_factory=dict) #fallback values for blank variables

    @property
    def ref(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class PromptSuggestion:
    category: str
    templates: List[str]


class PromptManager:
    def __init__(self, prompts_dir: Path):
        self.prompts_dir = Path(prompts_dir)
        if not self.prompts_dir.exists():
            raise FileNotFoundError(f"Prompts dir not found: {self.prompts_dir}")

        self.jinja_env = jinja2.Environment(
            undefined=jinja2.StrictUndefined, #strict checking, but 'is defined' test still works
            trim_blocks=True,
            lstrip_blocks=True,
            cache_size=100,
        )
        self._cache: Dict[str, PromptConfig] = {}
        self._suggestions: Dict[str, List[PromptSuggestion]] = {}

    def load_prompt(self, prompt_ref: str) -> PromptConfig:
        if prompt_ref in self._cache:
            return self._cache[prompt_ref]

        #parse ref
        if '@' not in prompt_ref:
            raise ValueError(f"Invalid prompt reference: {prompt_ref}")

        path_parts, version = prompt_ref.rsplit('@', 1)
        prompt_path = self.prompts_dir / path_parts / version
        if not prompt_path.exists():
            raise FileNotFoundError(f"Prompt not found: {prompt_path}")

        config = self._load_config(prompt_path)
        user_template = self._load_template(prompt_path, "user.j2")
        # system prompt is optional, some vision endpoints only take a user turn
        system_path = prompt_path / "system.j2"
        system_template = system_path.read_text(encoding="utf-8") if system_path.exists() else ""

        prompt_config = PromptConfig(
            name=path_parts,
            version=version,
            system_template=system_template,
            user_template=user_template,
            defaults=config.get('defaults') or {},
        )

        self._cache[prompt_ref] = prompt_config
        logger.info(f"Loaded prompt: {prompt_ref}")
        return prompt_config

    def render(self, prompt_ref: str, variables: Dict[str, Any]) -> List[Dict[str, str]]:
        config = self.load_prompt(prompt_ref)

        merged = dict(config.defaults)
        for key, value in variables.items():
            if isinstance(value, str) and not value.strip() and key in config.defaults:
                continue
            if value is None and key in config.defaults:
                continue
            merged[key] = value

        try:
            system_content = self.jinja_env.from_string(config.system_template).render(**merged).strip()
            user_content = self.jinja_env.from_string(config.user_template).render(**merged).strip()
        except jinja2.UndefinedError as e:
            raise ValueError(f"Missing required variable in prompt {prompt_ref}: {e}") from e

        messages = []
        if system_content:
            messages.append({"role": "system", "content": system_content})
        messages.append({"role": "user", "content": user_content})
        logger.debug(f"Rendered {prompt_ref} into {len(messages)} messages")
        return messages

    def load_suggestions(self, name: str) -> List[PromptSuggestion]:
        """Categorised example prompts, e.g. `generate/suggestions`."""
        if name in self._suggestions:
            return self._suggestions[name]

        path = self.prompts_dir / f"{name}.yaml"
        if not path.exists():
            raise FileNotFoundError(f"Suggestions not found: {path}")
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        suggestions = [
            PromptSuggestion(category=item["category"], templates=list(item.get("templates") or []))
            for item in raw.get("categories", [])
        ]
        self._suggestions[name] = suggestions
        return suggestions

    def _load_config(self, prompt_path: Path) -> dict:
        config_path = prompt_path / "config.yaml"
        if not config_path.exists():
            return {}
        with open(config_path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _load_template(self, prompt_path: Path, template_name: str) -> str:
        template_path = prompt_path / template_name
        if not template_path.exists():
            raise FileNotFoundError(f"Template file not found: {template_path}")
        return template_path.read_text(encoding="utf-8")


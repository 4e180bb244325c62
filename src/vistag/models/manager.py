from __future__ import annotations
from typing import Optional, Dict, Any, List, Union
from pathlib import Path
from dataclasses import dataclass, field
from enum import Enum
import os
import threading
import yaml
import time
import logging

from .prompts import PromptManager
from .providers.base import ChatRequest, ModelProvider, ModelResponse, ModelError, ImagePart
from .providers.gemini import GeminiProvider
from .providers.ollama import OllamaProvider
from .providers.openai_sdk import OpenAIProvider

logger = logging.getLogger(__name__)

PACKAGED_PROMPTS_DIR = Path(__file__).parents[1] / "prompts"


class Provider(Enum):
    GEMINI = "gemini"
    OLLAMA = "ollama"
    OPENAI = "openai"


def _provider_class(provider_type: Provider):
    if provider_type is Provider.GEMINI:
        return GeminiProvider
    if provider_type is Provider.OLLAMA:
        return OllamaProvider
    return OpenAIProvider


@dataclass(frozen=True)
class TaskConfig:
    provider: str
    model: str
    params: Dict[str, Any] = field(default_factory=dict)
    prompt_ref: Optional[str] = None #e.g. "analysis/describe@v1"
    timeout: Optional[float] = None


def _validate_config(config: Dict[str, Any]) -> None:
    for section in ("providers", "tasks"):
        if not isinstance(config.get(section), dict):
            raise ValueError(f"Config missing '{section}'")

    known_types = {p.value for p in Provider}
    for name, provider_cfg in config["providers"].items():
        provider_type = (provider_cfg or {}).get("type")
        if provider_type not in known_types:
            raise ValueError(f"Provider '{name}' has unknown type '{provider_type}'")

    for name, task_cfg in config["tasks"].items():
        task_cfg = task_cfg or {}
        for key in ("provider", "model"):
            if key not in task_cfg:
                raise ValueError(f"Task '{name}' missing {key}")
        if task_cfg["provider"] not in config["providers"]:
            raise ValueError(f"Task '{name}' references unknown provider '{task_cfg['provider']}'")


class ModelManager:
    """
    Routes named tasks to configured inference providers.

    The YAML config maps task names to a provider, model, default params and
    prompt reference. Providers are built on first use; those declaring
    ``api_key_env`` receive the credential from that environment variable.
    """

    def __init__(self, config_path: Union[Path, str], prompts_dir: Optional[Path] = None):
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")
        with open(self.config_path, encoding="utf-8") as f:
            self.config = yaml.safe_load(f) or {}
        _validate_config(self.config)

        self.prompts = PromptManager(prompts_dir or PACKAGED_PROMPTS_DIR)
        self._providers: Dict[str, ModelProvider] = {}
        self._stats: Dict[str, Dict[str, Any]] = {}
        #routes run in the threadpool; stats are updated from several threads
        self._stats_lock = threading.Lock()

    def task_config(self, task: str) -> TaskConfig:
        task_cfg = self.config["tasks"].get(task)
        if task_cfg is None:
            raise ValueError(f"Unknown task: {task}")
        return TaskConfig(
            provider=task_cfg["provider"],
            model=task_cfg["model"],
            params=dict(task_cfg.get("params") or {}),
            prompt_ref=task_cfg.get("prompt_ref"),
            timeout=task_cfg.get("timeout"),
        )

    def missing_credentials(self) -> Dict[str, str]:
        """Providers whose credential variable is unset, mapped to that variable's name."""
        return {
            name: cfg["api_key_env"]
            for name, cfg in self.config["providers"].items()
            if cfg.get("api_key_env") and not os.getenv(cfg["api_key_env"])
        }

    def is_task_ready(self, task: str) -> bool:
        return self.task_config(task).provider not in self.missing_credentials()

    def is_provider_reachable(self, task: str) -> bool:
        """Build the task's provider if needed and run its health check."""
        try:
            provider = self._get_provider(self.task_config(task).provider)
        except ModelError as e:
            logger.warning("Provider for task '%s' unavailable: %s", task, e)
            return False
        return provider.health_check()

    def _get_provider(self, provider_name: str) -> ModelProvider:
        provider = self._providers.get(provider_name)
        if provider is not None:
            return provider

        provider_cfg = self.config["providers"].get(provider_name)
        if provider_cfg is None:
            raise ValueError(f"Unknown provider: {provider_name}")

        settings = dict(provider_cfg.get("settings") or {})
        credential = os.getenv(provider_cfg.get("api_key_env") or "")
        if credential:
            settings.setdefault("api_key", credential)

        provider_cls = _provider_class(Provider(provider_cfg["type"]))
        # SDK clients refuse to construct without a credential
        try:
            provider = provider_cls(**settings)
        except Exception as e:
            raise ModelError(f"Failed to initialize provider '{provider_name}': {e}") from e

        self._providers[provider_name] = provider
        logger.info("initialized provider: %s (%s)", provider_name, provider_cfg["type"])
        return provider

    def call(self, task: str, prompt_ref: Optional[str], variables: Dict[str, Any], images: Optional[List[ImagePart]] = None, **params_override) -> ModelResponse:
        """
        Render ``prompt_ref`` (or the task's own) and send it with ``images``
        to the task's provider. Keyword overrides win over the task params;
        the prompt's stop sequences apply unless overridden.
        """
        task_cfg = self.task_config(task)
        prompt_ref = prompt_ref or task_cfg.prompt_ref
        if not prompt_ref:
            raise ValueError(f"Task '{task}' has no prompt_ref and none was given")

        params = {**task_cfg.params, **params_override}
        if task_cfg.timeout:
            params.setdefault("timeout", task_cfg.timeout)
        stop_sequences = self.prompts.load_prompt(prompt_ref).stop_sequences
        if stop_sequences:
            params.setdefault("stop_sequences", list(stop_sequences))
        request = ChatRequest(
            model=task_cfg.model,
            messages=self.prompts.render(prompt_ref, variables),
            images=images,
            params=params,
        )

        t0 = time.perf_counter()
        success = False
        try:
            response = self._get_provider(task_cfg.provider).chat(request)
            success = True
        finally:
            self._record(task, (time.perf_counter() - t0) * 1000, success)
        return response

    def _record(self, task: str, latency_ms: float, success: bool):
        with self._stats_lock:
            stats = self._stats.setdefault(task, {
                "total_calls": 0,
                "successful_calls": 0,
                "failed_calls": 0,
                "total_latency_ms": 0.0,
            })
            stats["total_calls"] += 1
            if success:
                stats["successful_calls"] += 1
                stats["total_latency_ms"] += latency_ms
            else:
                stats["failed_calls"] += 1

    def get_stats(self, task: Optional[str] = None) -> Dict:
        """Snapshot of the call counters, for one task or keyed by task."""
        with self._stats_lock:
            if task:
                return dict(self._stats.get(task, {}))
            return {name: dict(stats) for name, stats in self._stats.items()}

    def cleanup(self):
        if self._providers:
            logger.info("Releasing providers: %s", ", ".join(self._providers))
        self._providers.clear()

from __future__ import annotations
from typing import Optional, Dict, Any, List, Union
from pathlib import Path
from dataclasses import dataclass
from enum import Enum
import os
import yaml
import time
import logging
import threading

from .prompts import PromptManager
from .providers.base import (
    ChatRequest, ModelResponse, ImageGenerationRequest, ImageGenerationResponse, ModelError, ModelConfigError,
    InlineImage,
)
from .providers.openai_sdk import OpenAIProvider
from .services.base import BackgroundRemovalRequest, BackgroundRemovalResponse
from .services.removebg import RemoveBgService

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).parents[1]


def default_config_path() -> Path:
    return Path(os.getenv("IMAGESTATION_CONFIG") or PACKAGE_ROOT / "config" / "config.yaml")


class Provider(Enum):
    OPENAI = "openai"

class Service(Enum):
    REMOVEBG = "removebg" #binary in, binary out, no chat semantics

@dataclass(frozen=True)
class TaskConfig:
    provider: str
    model: str
    params: Dict[str, Any]
    prompt_ref: Optional[str] #e.g. "recognize/describe@v1"


class ModelManager:
    def __init__(self, config_path: Union[Path, str], prompts_dir: Optional[Path] = None):
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self._providers = {}
        self._services = {}
        self._stats = {} #performance tracking
        self._clients_lock = threading.Lock() #routers run pipelines on threadpool workers

        self.prompts = PromptManager(prompts_dir or PACKAGE_ROOT / "prompts")

    def _load_config(self) -> Dict:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")
        with open(self.config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if 'providers' not in config:
            raise ValueError("Config missing 'providers'")
        if 'tasks' not in config:
            raise ValueError("Config missing 'tasks'")

        for task_name, task_cfg in config['tasks'].items():
            if 'provider' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing provider")
            if 'model' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing model")

            provider_name = task_cfg['provider']
            if provider_name not in config['providers'] and provider_name not in (config.get('services') or {}):
                raise ValueError(f"Task '{task_name}' references unknown provider '{provider_name}'")

        return config

    @property
    def app_settings(self) -> Dict[str, Any]:
        return self.config.get('app') or {}

    def task_config(self, task: str) -> TaskConfig:
        if task not in self.config["tasks"]:
            raise ModelConfigError(f"Unknown task: {task}")
        task_cfg = self.config["tasks"][task]
        return TaskConfig(
            provider=task_cfg["provider"],
            model=task_cfg["model"],
            params=dict(task_cfg.get("params") or {}),
            prompt_ref=task_cfg.get("prompt_ref"),
        )

    def _get_provider(self, provider_name: str):
        with self._clients_lock:
            if provider_name in self._providers:
                return self._providers[provider_name]
            if provider_name not in self.config['providers']:
                raise ModelConfigError(f"Unknown provider: {provider_name}")

            provider_cfg = self.config["providers"][provider_name]
            provider_type = provider_cfg["type"]
            settings = provider_cfg.get("settings") or {}

            if provider_type == Provider.OPENAI.value:
                provider = OpenAIProvider(**settings)
            else:
                raise ModelConfigError(f"Unknown provider type: {provider_type}")
            self._providers[provider_name] = provider
        logger.info(f"initialized provider: {provider_name}")
        return provider

    def _get_service(self, service_name: str):
        with self._clients_lock:
            if service_name in self._services:
                return self._services[service_name]
            services = self.config.get('services') or {}
            if service_name not in services:
                raise ModelConfigError(f"Unknown service: {service_name}")

            service_cfg = services[service_name]
            settings = service_cfg.get("settings") or {}
            if not isinstance(settings, dict):
                settings = {}

            if service_cfg.get("type") == Service.REMOVEBG.value:
                service = RemoveBgService(**settings)
            else:
                raise ModelConfigError(f"Unknown service type: {service_cfg.get('type')}")
            self._services[service_name] = service
        logger.info(f"initialized service: {service_name}")
        return service

    def call(self, task: str, prompt_ref: Optional[str], variables: Dict[str, Any], images: Optional[List[InlineImage]] = None, **params_override) -> ModelResponse:
        task_cfg = self.task_config(task)

        ref = prompt_ref or task_cfg.prompt_ref
        if not ref:
            raise ModelConfigError(f"Task '{task}' has no prompt_ref")
        rendered = self.prompts.render(ref, variables)

        params = {**task_cfg.params, **params_override}
        extra_body = params.pop("extra_body", None)

        request = ChatRequest(
            model=task_cfg.model,
            messages=rendered,
            images=images,
            params=params,
            extra_body=extra_body,
        )

        provider = self._get_provider(task_cfg.provider)
        return self._timed(task, provider.chat, request)

    def generate_image(self, task: str, prompt: str, size: str, **params_override) -> ImageGenerationResponse:
        task_cfg = self.task_config(task)
        request = ImageGenerationRequest(
            model=task_cfg.model,
            prompt=prompt,
            size=size,
            params={**task_cfg.params, **params_override},
        )
        provider = self._get_provider(task_cfg.provider)
        return self._timed(task, provider.generate_image, request)

    def remove_background(self, task: str, image: bytes, filename: str, content_type: str) -> BackgroundRemovalResponse:
        task_cfg = self.task_config(task)
        request = BackgroundRemovalRequest(
            image=image,
            filename=filename,
            content_type=content_type,
            size=task_cfg.params.get("size"),
        )
        service = self._get_service(task_cfg.provider)
        return self._timed(task, service.remove_background, request)

    def _timed(self, task: str, fn, request):
        start_time = time.perf_counter()
        try:
            response = fn(request)
        except ModelError:
            self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=False)
            raise
        self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=True)
        return response

    def _track_stats(self, task: str, latency_ms: float, success: bool):
        if task not in self._stats:
            self._stats[task] = {
                'total_calls': 0,
                'successful_calls': 0,
                'total_latency_ms': 0
            }

        stats = self._stats[task]
        stats['total_calls'] += 1
        if success:
            stats['successful_calls'] += 1
            stats['total_latency_ms'] += latency_ms

    def get_stats(self, task: Optional[str] = None) -> Dict:
        if task:
            return self._stats.get(task, {})
        return self._stats

    def cleanup(self):
        for name, client in {**self._providers, **self._services}.items():
            if hasattr(client, 'cleanup'):
                try:
                    client.cleanup()
                    logger.info(f"Cleaned up {name}")
                except Exception as e:
                    logger.error(f"Cleanup failed for {name}: {e}")

        self._providers.clear()
        self._services.clear()

# config.py
from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    loop_seconds: int = 5
    requeue_seconds: int = 30
    agent_namespace: str = "kube-system"
    agent_name: str = "dummy-bridge-ensure"
    agent_image: str = "alpine:3.18"
    bridge_poll_seconds: int = 30
    nad_subnet: str = "10.10.0.0/24"
    backoff_base_seconds: float = 5.0
    backoff_max_seconds: float = 300.0
    backoff_jitter: float = 0.1
    log_level: str = "INFO"
    debug: bool = False


def load_settings(env=None) -> Settings:
    """
    Read controller settings from the environment.
    Unset variables keep the dataclass defaults.
    """
    env = os.environ if env is None else env
    d = Settings()
    return Settings(
        loop_seconds=int(env.get("LOOP_SECONDS", d.loop_seconds)),
        requeue_seconds=int(env.get("REQUEUE_SECONDS", d.requeue_seconds)),
        agent_namespace=env.get("AGENT_NAMESPACE", d.agent_namespace),
        agent_name=env.get("AGENT_NAME", d.agent_name),
        agent_image=env.get("AGENT_IMAGE", d.agent_image),
        bridge_poll_seconds=int(env.get("BRIDGE_POLL_SECONDS", d.bridge_poll_seconds)),
        nad_subnet=env.get("NAD_SUBNET", d.nad_subnet),
        backoff_base_seconds=float(env.get("BACKOFF_BASE_SECONDS", d.backoff_base_seconds)),
        backoff_max_seconds=float(env.get("BACKOFF_MAX_SECONDS", d.backoff_max_seconds)),
        backoff_jitter=float(env.get("BACKOFF_JITTER", d.backoff_jitter)),
        log_level=env.get("LOG_LEVEL", d.log_level).upper(),
        debug=env.get("CONTROLLER_DEBUG", "0") == "1",
    )

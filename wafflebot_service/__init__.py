"""
wafflebot_service - Orchestrator and Actuator services

Architecture:
- Orchestrator: recipe progression + power-up rendezvous (results topic in,
  commands and ui topics out)
- Actuator: one physical action per command, always acknowledged
  (commands topic in, results topic out)
- WaffleConfig: configuration loaded from YAML
- RecipeQueue / PowerGate: the orchestrator's only state

Threading Model:
- One consuming thread per process (MessageConsumer)
- paho-mqtt network thread only enqueues payloads
- Optional auto-shutdown timer thread (orchestrator)
"""

from wafflebot_service.config import WaffleConfig
from wafflebot_service.recipe import RECIPE, RecipeStep, RecipeQueue, RecipeExhaustedError
from wafflebot_service.gate import PowerGate
from wafflebot_service.timers import OneShotTimer, Sleeper
from wafflebot_service.rig import ApplianceRig
from wafflebot_service.orchestrator import Orchestrator
from wafflebot_service.actuator import Actuator

__all__ = [
    "WaffleConfig",
    "RECIPE",
    "RecipeStep",
    "RecipeQueue",
    "RecipeExhaustedError",
    "PowerGate",
    "OneShotTimer",
    "Sleeper",
    "ApplianceRig",
    "Orchestrator",
    "Actuator",
]

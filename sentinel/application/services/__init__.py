from .monitoring_state_machine import MonitoringStateMachine, StateListener

__all__ = ["MonitoringStateMachine", "StateListener"]

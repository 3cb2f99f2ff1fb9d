# Local application imports
from ...dto.monitoring_dto import MonitoringStatusResponse
from ...services.monitoring_state_machine import MonitoringStateMachine


class GetMonitoringStatusUseCase:
    """Use case for reading the current monitoring status"""

    def __init__(self, state_machine: MonitoringStateMachine) -> None:
        self.state_machine = state_machine

    async def execute(self) -> MonitoringStatusResponse:
        return MonitoringStatusResponse.from_snapshot(self.state_machine.snapshot())

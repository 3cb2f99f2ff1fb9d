# Local application imports
from ...dto.monitoring_dto import MonitoringStatusResponse
from ...services.monitoring_state_machine import MonitoringStateMachine


class StartMonitoringUseCase:
    """Use case for the 'start monitoring' user command"""

    def __init__(self, state_machine: MonitoringStateMachine) -> None:
        self.state_machine = state_machine

    async def execute(self) -> MonitoringStatusResponse:
        """
        Start monitoring (idempotent while already active)

        Returns:
            MonitoringStatusResponse after the command. A camera failure is
            reported through state ERROR and errorMessage, not raised.
        """
        await self.state_machine.start()
        return MonitoringStatusResponse.from_snapshot(self.state_machine.snapshot())

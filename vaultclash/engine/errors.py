# vaultclash/engine/errors.py


class BattleError(Exception):
    pass


class InvalidEventError(BattleError):
    """An event arrived in a phase that does not accept it."""

    def __init__(self, event, phase: str):
        self.event = event
        self.phase = phase
        super().__init__(f"{type(event).__name__} is not valid during '{phase}'")


class ResourceUpdateError(BattleError):
    def __init__(self, participant_id: str, message: str = "resource update rejected"):
        self.participant_id = participant_id
        super().__init__(f"{participant_id}: {message}")


class ChannelError(BattleError):
    pass

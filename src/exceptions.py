class SchedulerError(Exception):
    """Base class for every error this service raises on purpose."""


class InvalidTimeFormat(SchedulerError, ValueError):
    def __init__(self, raw):
        self.raw = raw
        super().__init__(f"Invalid time format: '{raw}'")


class InvalidDateFormat(SchedulerError, ValueError):
    def __init__(self, raw):
        self.raw = raw
        super().__init__(f"Invalid date format: '{raw}'")


class EmptyConversation(SchedulerError):
    """The payload carried no usable user/assistant turns."""


class UnknownTool(SchedulerError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Tool '{name}' is not recognized")


class RemoteCollaboratorFailure(SchedulerError):
    """A call to the calendar or the LLM backend failed."""

    def __init__(self, collaborator: str, message: str):
        self.collaborator = collaborator
        super().__init__(f"{collaborator} failure: {message}")

class PreconditionError(RuntimeError):
    """Raised when a command is rejected because the session is not in a state to accept it.

    The session state is left unchanged whenever this is raised.
    """

## Engine error taxonomy


class EngineConfigurationError(Exception):
    """The engine cannot price anything without this configuration."""


class FinancialRulesNotConfigured(EngineConfigurationError):
    def __init__(self, message: str = "Financial rules not configured"):
        super().__init__(message)

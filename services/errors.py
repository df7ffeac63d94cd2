"""Domain exceptions raised across the moderation pipeline."""


class SubmissionError(RuntimeError):
    """The moderation service refused to start a job for a staged object."""


class StagingError(RuntimeError):
    """The raw upload could not be written to private staging storage."""


class StatusTransitionError(RuntimeError):
    """A video already in a terminal moderation state was asked to transition again."""


class InvalidAccessToken(ValueError):
    """Missing, malformed, expired or wrongly signed access token."""

"""
Errors raised while submitting and polling extraction jobs.

Every error is terminal for the job it belongs to; str(error) is what the
error panel shows.
"""


class JobError(Exception):
    """Base exception for all job errors"""
    pass


class SubmissionError(JobError):
    """Raised when the job could not be created or no job id came back"""
    pass


class FormatError(JobError):
    """Raised when a finished result matches no known payload shape"""

    def __init__(self, message: str = "Unexpected response format received from API."):
        super().__init__(message)


class ServerError(JobError):
    """Raised when the result endpoint answers 500 or 408"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Error ({status_code}): {body}")


class PollingError(JobError):
    """Raised on transport or decode failures during a poll tick"""

    def __init__(self, message: str = "An error occurred during polling"):
        super().__init__(message)


class UnexpectedStatusError(JobError):
    """Raised when the result endpoint answers with an unhandled status"""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Unexpected status during polling: {status_code}")


class PollTimeoutError(JobError):
    """Raised when a job is still pending after the configured number of polls"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Job still pending after {attempts} polls")

"""Exceptions raised by the exam runner."""


class ExamError(Exception):
    """Base class for exam runner errors."""


class ExamNotReadyError(ExamError):
    """The test has no sections or no questions to take."""


class DataIntegrityError(ExamError):
    """Exam content is inconsistent or could not be loaded completely."""


class SectionCycleError(DataIntegrityError):
    """A section's ancestor chain revisits itself."""

    def __init__(self, section_ids: list[str]):
        self.section_ids = section_ids
        super().__init__(
            "Section hierarchy contains a cycle: " + ", ".join(section_ids)
        )


class MicrophoneError(ExamError):
    """Microphone permission was denied or the device is unavailable."""


class MicrophoneCheckRequired(ExamError):
    """The exam cannot start before the microphone self-test is accepted."""


class NavigationError(ExamError):
    """Requested question index is outside of the question list."""


class SubmissionError(ExamError):
    """Submission could not be created."""


class ApiError(ExamError):
    """Non-success response from the exam API."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")

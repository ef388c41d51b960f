"""
Errors raised while publishing a status
"""


class PublishError(Exception):
    """A publishing stage (capture, login, upload, attach, post) failed"""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage

    def __str__(self):
        return f"{self.stage} failed: {super().__str__()}"

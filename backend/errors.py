class TriviaError(Exception):
    """Base class for every error raised by the trivia engine"""


class QuestionSourceError(TriviaError):
    """The live question generator could not be reached or refused the call"""


class GenerationParseError(TriviaError):
    """Generated text did not contain a usable question/answer pair"""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


class NoQuestionAvailableError(TriviaError):
    """Generation failed and the fallback store is empty"""


class NoActiveQuestionError(TriviaError):
    """An answer was submitted before any question was armed"""


class InvalidAnswerError(TriviaError, ValueError):
    """The submitted answer is missing or not text"""

from answer_engine.services.answer.streamer import (
    Answer,
    AnswerStreamer,
    BufferedAnswer,
    StreamedAnswer,
)

__all__ = ["Answer", "AnswerStreamer", "BufferedAnswer", "StreamedAnswer"]

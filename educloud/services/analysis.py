"""Study material attached to uploaded documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class Flashcard:
    question: str
    answer: str

    def to_dict(self) -> Dict[str, str]:
        return {"pregunta": self.question, "respuesta": self.answer}


@dataclass(frozen=True)
class ExamQuestion:
    question: str
    options: List[str]
    correct_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pregunta": self.question,
            "opciones": list(self.options),
            "correcta": self.correct_index,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Summary, flashcards and exam questions derived from a document."""

    summary: str
    flashcards: List[Flashcard] = field(default_factory=list)
    exam: List[ExamQuestion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resumen": self.summary,
            "flashcards": [card.to_dict() for card in self.flashcards],
            "examen": [question.to_dict() for question in self.exam],
        }


def placeholder_analysis() -> AnalysisResult:
    """Return the fixed analysis attached to every upload.

    Document analysis is not wired up yet; callers always receive this
    placeholder so clients can rely on the response shape.
    """

    return AnalysisResult(
        summary="Resumen simulado del PDF. La IA detecta los puntos clave y los resume.",
        flashcards=[
            Flashcard("¿Cuál es el tema principal?", "Aplicación de IA en educación."),
            Flashcard("Beneficio clave de la IA", "Personalización del aprendizaje."),
        ],
        exam=[
            ExamQuestion("La IA permite:", ["Personalizar", "Desordenar", "Quitar tareas"], 0),
            ExamQuestion("¿Qué requiere la IA?", ["Datos y modelos", "Suerte", "Nada"], 0),
        ],
    )


__all__ = ["AnalysisResult", "ExamQuestion", "Flashcard", "placeholder_analysis"]

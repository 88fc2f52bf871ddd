"""
Exam Service - multiple choice skill exams.

Questions come from Gemini when possible. Free-tier keys and models are
rate limited, so every (model, key) pair is tried in order, skipping any
model or key that has used up its request budget. When nothing works the
exam is built from local question banks instead ("rule-based").

Usage counters are in-process and shared by all request threads.
"""

import logging
import random
import re
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from app.core.config import get_settings
from app.core.logging_config import mask_key
from app.services.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

settings = get_settings()

_OPTION_LINE = re.compile(r"^[A-D]\) .*")
_ANSWER_INDEX = {"A": 0, "B": 1, "C": 2, "D": 3}

EVALUATION_FALLBACK = {"score": 75, "feedback": "Good understanding shown", "confidence": 0.8}


# ============================================================
# QUESTION BANKS
# (question, options, index of the correct option)
# ============================================================

DATA_WAREHOUSE_QUESTIONS = [
    ("What is the primary purpose of a data warehouse?",
     ["Real-time transaction processing", "Historical data analysis and reporting", "Website hosting", "Mobile app development"], 1),
    ("Which schema design is most common in data warehousing?",
     ["Star Schema", "Network Schema", "Object-oriented Schema", "Hierarchical Schema"], 0),
    ("What does ETL stand for in data warehousing?",
     ["Extract, Transform, Load", "Extract, Transfer, Load", "Enter, Transform, Leave", "Export, Transform, Load"], 0),
    ("Which is NOT a common data warehouse component?",
     ["OLAP cubes", "Data marts", "ETL tools", "Web servers"], 3),
    ("What is the main advantage of a data warehouse over operational databases?",
     ["Faster transaction processing", "Optimized for analytical queries", "Better for real-time updates", "Lower storage costs"], 1),
]

JAVASCRIPT_QUESTIONS = [
    ("What is the output of: console.log(typeof null)?",
     ["null", "object", "undefined", "boolean"], 1),
    ("Which method creates a new array with results of calling a function?",
     ["map()", "forEach()", "filter()", "reduce()"], 0),
    ("What does 'this' keyword refer to in a global context?",
     ["undefined", "null", "global object", "current function"], 2),
    ("Which is NOT a JavaScript data type?",
     ["symbol", "bigint", "character", "undefined"], 2),
    ("What is the purpose of 'use strict'?",
     ["Enables strict mode", "Enables ES6 features", "Improves performance", "Enables TypeScript"], 0),
]

JAVA_QUESTIONS = [
    ("What is the default value of a boolean variable in Java?",
     ["true", "false", "null", "0"], 1),
    ("Which keyword is used to inherit a class?",
     ["implements", "extends", "inherits", "super"], 1),
    ("What is JVM?",
     ["Java Virtual Machine", "Java Variable Manager", "JavaScript Virtual Machine", "Java Version Manager"], 0),
    ("Which collection maintains insertion order?",
     ["HashSet", "TreeSet", "ArrayList", "HashMap"], 2),
    ("What is method overloading?",
     ["Same method name, different parameters", "Changing method implementation", "Inheriting methods", "Hiding methods"], 0),
]

PYTHON_QUESTIONS = [
    ("How do you create a list in Python?",
     ["[]", "{}", "()", "<>"], 0),
    ("What is used to define a function in Python?",
     ["function", "def", "func", "define"], 1),
    ("Which is NOT a Python framework?",
     ["Django", "Flask", "Spring", "FastAPI"], 2),
    ("What does PEP 8 define?",
     ["Python Enhancement Proposals", "Python Error Prevention", "Package Management", "Performance Tips"], 0),
    ("How do you handle exceptions in Python?",
     ["try-catch", "try-except", "error-handle", "catch-error"], 1),
]

# Generic templates; every option set ends with the catch-all answer
GENERIC_QUESTIONS = [
    ("What is the primary use case for {skill}?",
     ["Web development", "Mobile development", "Data analysis", "All of the above"]),
    ("Which paradigm does {skill} primarily follow?",
     ["Object-oriented programming", "Functional programming", "Procedural programming", "Multiple paradigms"]),
    ("What type of technology is {skill}?",
     ["Programming language", "Framework", "Database", "Development tool"]),
    ("What is {skill} commonly used for in industry?",
     ["Building applications", "Data processing", "System administration", "Various purposes"]),
    ("Which concept is fundamental to understanding {skill}?",
     ["Variables and functions", "Objects and classes", "Data structures", "Depends on the technology"]),
]
GENERIC_CORRECT_INDEX = 3


def _make_question(qid: int, question: str, options: List[str], correct: int) -> dict:
    return {"id": qid, "question": question, "options": list(options), "correct": correct}


def select_question_bank(skill: str) -> Optional[list]:
    s = skill.lower()
    if "data warehousing" in s or "data warehouse" in s or "etl" in s:
        return DATA_WAREHOUSE_QUESTIONS
    if "javascript" in s or "js" in s:
        return JAVASCRIPT_QUESTIONS
    if "java" in s and "javascript" not in s:
        return JAVA_QUESTIONS
    if "python" in s:
        return PYTHON_QUESTIONS
    return None


def build_rule_based_questions(skill: str, number_of_questions: int, rng: random.Random = None) -> List[dict]:
    rng = rng or random.Random()
    bank = select_question_bank(skill)
    if bank is not None:
        picked = list(bank)
        rng.shuffle(picked)
        return [
            _make_question(i + 1, q, opts, correct)
            for i, (q, opts, correct) in enumerate(picked[:number_of_questions])
        ]

    questions = []
    for i in range(number_of_questions):
        template, options = GENERIC_QUESTIONS[i % len(GENERIC_QUESTIONS)]
        questions.append(_make_question(i + 1, template.format(skill=skill), options, GENERIC_CORRECT_INDEX))
    return questions


def build_exam_prompt(skill: str, category: str, difficulty: str, n: int) -> str:
    return (
        f"Create exactly {n} multiple choice questions about {skill}. "
        f"Difficulty: {difficulty}. Category: {category}.\n\n"
        "STRICT FORMAT REQUIREMENTS - FOLLOW EXACTLY:\n"
        "- Each question must start with 'Q:' followed by the question text\n"
        "- Then exactly 4 options labeled A), B), C), D)\n"
        "- End with 'Correct:' followed by the correct letter (A, B, C, or D)\n"
        "- Separate questions with exactly one blank line\n\n"
        "EXAMPLE:\n"
        "Q: What is the main purpose of this technology?\n"
        "A) Frontend development\n"
        "B) Backend development\n"
        "C) Database management\n"
        "D) All of the above\n"
        "Correct: D\n\n"
        f"Now generate {n} questions about {skill}:"
    )


def parse_generated_questions(text: str) -> List[dict]:
    """
    Parse the Q:/A)-D)/Correct: format.

    A question is emitted when the next "Q:" starts; the final one only if
    it received a Correct: line.
    """
    questions: List[dict] = []
    current: Optional[dict] = None

    for line in text.splitlines():
        line = line.strip()
        if line.startswith("Q:"):
            if current is not None:
                questions.append(current)
            current = {"id": len(questions) + 1, "question": line[2:].strip(), "options": []}
        elif _OPTION_LINE.match(line):
            if current is not None:
                current["options"].append(line[3:].strip())
        elif line.startswith("Correct:"):
            if current is not None:
                answer = line[8:].strip().upper()
                current["correct"] = _ANSWER_INDEX.get(answer, 0)

    if current is not None and "correct" in current:
        questions.append(current)
    return questions


class ExamService:
    """
    Generates exams, rotating across Gemini keys and models.
    """

    def __init__(
        self,
        api_keys: List[str] = None,
        models: List[str] = None,
        client_factory: Callable[[str], GeminiClient] = None,
        max_requests_per_key: int = None,
        max_requests_per_model: int = None,
    ):
        self.api_keys = list(api_keys if api_keys is not None else settings.exam_api_keys)
        self.models = list(models if models is not None else settings.exam_models)
        self.max_per_key = max_requests_per_key or settings.max_requests_per_key
        self.max_per_model = max_requests_per_model or settings.max_requests_per_model
        self._client_factory = client_factory or (lambda key: GeminiClient(api_key=key))
        self._clients: Dict[str, GeminiClient] = {}

        self._lock = threading.Lock()
        self._key_usage: Dict[str, int] = {k: 0 for k in self.api_keys}
        self._model_usage: Dict[str, int] = {m: 0 for m in self.models}

        logger.info("Exam service ready with %d API keys and %d models", len(self.api_keys), len(self.models))

    # ------------------------------------------------------------
    # usage bookkeeping
    # ------------------------------------------------------------

    def _client_for(self, api_key: str) -> GeminiClient:
        with self._lock:
            if api_key not in self._clients:
                self._clients[api_key] = self._client_factory(api_key)
            return self._clients[api_key]

    def _model_available(self, model: str) -> bool:
        with self._lock:
            return self._model_usage.get(model, 0) < self.max_per_model

    def _available_keys(self) -> List[str]:
        with self._lock:
            return [k for k in self.api_keys if self._key_usage.get(k, 0) < self.max_per_key]

    def _record_success(self, api_key: str, model: str) -> None:
        with self._lock:
            self._key_usage[api_key] = self._key_usage.get(api_key, 0) + 1
            self._model_usage[model] = self._model_usage.get(model, 0) + 1

    def get_usage_stats(self) -> dict:
        with self._lock:
            return {
                "apiKeyUsage": {mask_key(k): v for k, v in self._key_usage.items()},
                "modelUsage": dict(self._model_usage),
                "availableKeys": sum(1 for v in self._key_usage.values() if v < self.max_per_key),
                "totalKeys": len(self.api_keys),
            }

    def reset_usage_counters(self) -> None:
        with self._lock:
            self._key_usage = {k: 0 for k in self.api_keys}
            self._model_usage = {m: 0 for m in self.models}
        logger.info("Exam usage counters reset")

    # ------------------------------------------------------------
    # generation
    # ------------------------------------------------------------

    def _generate_with_gemini(self, skill: str, category: str, difficulty: str, n: int) -> Optional[dict]:
        prompt = build_exam_prompt(skill, category, difficulty, n)
        required = min(3, n)

        for model in self.models:
            if not self._model_available(model):
                logger.debug("Model %s over its request budget, skipping", model)
                continue

            for api_key in self._available_keys():
                try:
                    text = self._client_for(api_key)._call_api(
                        "You write multiple choice exam questions.",
                        prompt,
                        max_tokens=1024,
                        temperature=0.7,
                        model=model,
                        top_p=0.8,
                    )
                except Exception as e:
                    logger.warning("Gemini %s with key %s failed: %s", model, mask_key(api_key), e)
                    continue

                questions = parse_generated_questions(text)
                if questions and len(questions) >= required:
                    self._record_success(api_key, model)
                    logger.info("Generated %d questions for %s with %s", len(questions), skill, model)
                    return {
                        "questions": questions,
                        "totalQuestions": len(questions),
                        "skill": skill,
                        "source": "gemini",
                        "generatedAt": datetime.utcnow(),
                    }
                logger.warning("Gemini %s returned %d usable questions, need %d", model, len(questions), required)

        return None

    def generate_exam(self, skill: str, category: str = "General", difficulty: str = "intermediate",
                      number_of_questions: int = 5) -> dict:
        if self.api_keys:
            result = self._generate_with_gemini(skill, category, difficulty, number_of_questions)
            if result is not None:
                return result
            logger.warning("All Gemini models/keys failed for %s, using rule-based questions", skill)
        else:
            logger.info("No Gemini exam keys configured, using rule-based questions")

        questions = build_rule_based_questions(skill, number_of_questions)
        logger.info("Generated %d rule-based questions for %s", len(questions), skill)
        return {
            "questions": questions,
            "totalQuestions": len(questions),
            "skill": skill,
            "category": category,
            "difficulty": difficulty,
            "source": "rule-based",
            "generatedAt": datetime.utcnow(),
        }

    def evaluate_answer(self, question: str, answer: str, context: str = None) -> dict:
        """
        Score a free-text answer 0-100. Falls back to EVALUATION_FALLBACK
        when no model is available or the reply is unusable.
        """
        system_prompt = (
            "You grade answers to technical interview questions. Return ONLY valid JSON: "
            '{"score": 0-100, "feedback": "one or two sentences", "confidence": 0.0-1.0}'
        )
        user_content = f"Question: {question}\nAnswer: {answer}"
        if context:
            user_content += f"\nContext: {context}"

        for model in self.models:
            if not self._model_available(model):
                continue
            for api_key in self._available_keys():
                client = self._client_for(api_key)
                try:
                    raw = client._call_api(system_prompt, user_content, max_tokens=256,
                                           temperature=0.2, model=model)
                    data = client._extract_json(raw)
                    result = {
                        "score": max(0, min(100, int(data["score"]))),
                        "feedback": str(data.get("feedback") or "").strip(),
                        "confidence": max(0.0, min(1.0, float(data.get("confidence", 0.5)))),
                    }
                except Exception as e:
                    logger.warning("Answer evaluation with %s failed: %s", model, e)
                    continue
                self._record_success(api_key, model)
                return result

        return dict(EVALUATION_FALLBACK)


# Singleton instance
_exam_service: Optional[ExamService] = None
_exam_service_lock = threading.Lock()


def get_exam_service() -> ExamService:
    """Get or create the exam service (singleton; counters must be shared)"""
    global _exam_service
    with _exam_service_lock:
        if _exam_service is None:
            _exam_service = ExamService()
    return _exam_service

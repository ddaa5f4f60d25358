"""
Prompts for every model-backed operation of the tutor.

Templates are plain ``str.format`` strings; literal JSON braces are doubled.
The JSON-producing prompts spell out the exact shape the parsers in
``content.py`` and ``planner.py`` validate against.
"""
from __future__ import annotations

from typing import Any

from src.tutor.models import ConceptInfo, Lesson, PlanStructure

# =============================================================================
# Lesson Structure Analysis
# =============================================================================

STRUCTURE_SYSTEM_PROMPT = (
    'You are an expert curriculum designer. Analyze the subject "{subject}" '
    "and determine the optimal learning structure."
)

STRUCTURE_PROMPT = """Analyze "{subject}" and return JSON with:
{{
  "recommendedLessons": number (6-15 based on complexity),
  "complexity": "beginner|intermediate|advanced",
  "focusAreas": ["area1", "area2", "area3"],
  "learningObjectives": ["objective1", "objective2"],
  "estimatedHoursPerLesson": number (0.5-3),
  "prerequisites": ["prereq1", "prereq2"] or [],
  "reasoning": "Why this structure works for this subject"
}}

Consider:
- Subject complexity and depth
- Typical learning progression
- Practical vs theoretical balance
- Student engagement factors"""

# =============================================================================
# Lesson Plan
# =============================================================================

PLAN_SYSTEM_PROMPT = (
    "You are an expert curriculum designer creating a comprehensive learning plan. "
    "Create exactly {lesson_count} progressive lessons that build upon each other logically."
)

PLAN_PROMPT = """Create a learning plan for "{subject}" with exactly {lesson_count} lessons.

Subject Analysis:
- Complexity: {complexity}
- Focus Areas: {focus_areas}
- Learning Objectives: {objectives}

Return JSON:
{{
  "subject": "{subject}",
  "lessons": [
    {{
      "id": "lesson-1",
      "title": "Descriptive, engaging lesson title",
      "description": "What students will learn and why it matters",
      "completed": false,
      "concepts": [
        {{
          "id": "concept-1",
          "name": "Specific concept covered in this lesson",
          "description": "One sentence on what the concept is",
          "difficulty": "beginner|intermediate|advanced",
          "estimatedPracticeItems": 3
        }}
      ]
    }}
  ]
}}

Requirements:
- Each lesson should build naturally on previous ones
- Each lesson has 2-4 concepts, ordered from simplest to hardest
- Titles should be specific and engaging, not generic
- Descriptions should explain practical value
- Progress from foundational to advanced concepts
- Include real-world applications where relevant"""

# =============================================================================
# Progress Criteria
# =============================================================================

CRITERIA_SYSTEM_PROMPT = (
    'You are an expert in learning analytics. Determine optimal progress criteria for "{subject}".'
)

CRITERIA_PROMPT = """Analyze "{subject}" (complexity: {complexity}) and determine optimal learning progress criteria.

Return JSON:
{{
  "minCorrectAnswers": number (2-5),
  "minTotalAttempts": number (3-6),
  "minAccuracy": number (0.6-0.8),
  "adaptiveFactors": {{
    "difficultyAdjustment": number (0.8-1.2),
    "engagementWeight": number (0.1-0.3),
    "retentionFactor": number (0.7-0.9)
  }},
  "reasoning": "Why these criteria work for this subject"
}}

Consider:
- Subject difficulty and abstract nature
- Typical learning curves
- Importance of accuracy vs exploration
- Student motivation factors"""

# =============================================================================
# Lesson Content
# =============================================================================

CONTENT_SYSTEM_PROMPT = (
    "You are an expert educational content creator. "
    "Create engaging, interactive content that helps students learn effectively."
)

CONTENT_CONTEXT = """Subject: {subject}
Lesson: {title}
Description: {description}
Current concept: {concept_name} ({concept_difficulty}) - {concept_description}"""

MULTIPLE_CHOICE_PROMPT = """{context}

Create a multiple-choice question that tests understanding of the current concept.

Return JSON:
{{
  "type": "multiple-choice",
  "data": {{
    "question": "Clear, specific question about the concept",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": 0,
    "explanation": "Why this answer is correct and others are wrong",
    "difficulty": "beginner|intermediate|advanced",
    "category": "{title}"
  }}
}}

Make the question practical and test real understanding, not just memorization."""

FILL_BLANK_PROMPT = """{context}

Create a fill-in-the-blank exercise for the current concept.

Return JSON:
{{
  "type": "fill-blank",
  "data": {{
    "question": "Complete this statement about {concept_name}",
    "template": "Text with ___ blanks ___ to fill in ___",
    "answers": ["answer1", "answer2", "answer3"],
    "hints": ["Hint for blank 1", "Hint for blank 2", "Hint for blank 3"],
    "explanation": "Why these answers are correct",
    "category": "{title}",
    "difficulty": "beginner|intermediate|advanced"
  }}
}}

Create meaningful blanks that test key ideas."""

CONCEPT_CARD_PROMPT = """{context}

Create a concept card that explains the current concept.

Return JSON:
{{
  "type": "concept-card",
  "data": {{
    "title": "{concept_name}",
    "summary": "One clear sentence explaining the main idea",
    "details": "2-3 sentences with deeper explanation",
    "examples": ["Real-world example 1", "Real-world example 2"],
    "keyPoints": ["Key point 1", "Key point 2", "Key point 3"],
    "difficulty": "beginner|intermediate|advanced"
  }}
}}

Focus on clarity and practical understanding."""

STEP_SOLVER_PROMPT = """{context}

Create a step-by-step problem that applies the current concept.

Return JSON:
{{
  "type": "step-solver",
  "data": {{
    "problem": "A practical problem that uses {concept_name}",
    "problemType": "{title}",
    "steps": [
      {{
        "id": "1",
        "description": "What to do in this step",
        "calculation": "The work or reasoning",
        "result": "Result of this step",
        "explanation": "Why this step is needed"
      }}
    ],
    "finalAnswer": "The complete solution",
    "difficulty": "beginner|intermediate|advanced",
    "learningObjective": "What students learn from solving this"
  }}
}}

Create a meaningful problem that builds understanding."""

EXPLAINER_PROMPT = """{context}

Create an interactive explanation of the current concept.

Return JSON:
{{
  "type": "explainer",
  "data": {{
    "title": "{concept_name}",
    "overview": "Clear, engaging overview of the concept (1-2 sentences)",
    "sections": [
      {{
        "heading": "What is {concept_name}?",
        "paragraphs": ["Basic explanation.", "Building on it with examples."]
      }},
      {{
        "heading": "Key Components",
        "paragraphs": ["The main parts.", "How they work together."]
      }},
      {{
        "heading": "Real-World Applications",
        "paragraphs": ["Concrete applications.", "Relevance to the student."]
      }}
    ],
    "conclusion": "Brief summary that reinforces key learning points",
    "difficulty": "beginner|intermediate|advanced",
    "estimatedReadTime": 3
  }}
}}

Each section should have 2-4 meaningful paragraphs."""

GENERIC_CONTENT_PROMPT = """{context}

Create educational content of type "{content_type}" for the current concept.
Return valid JSON with type "{content_type}" and a "data" object.
Focus on student engagement and practical understanding."""

CONTENT_PROMPTS = {
    "multiple-choice": MULTIPLE_CHOICE_PROMPT,
    "fill-blank": FILL_BLANK_PROMPT,
    "concept-card": CONCEPT_CARD_PROMPT,
    "step-solver": STEP_SOLVER_PROMPT,
    "explainer": EXPLAINER_PROMPT,
}

# =============================================================================
# Tutor Responses
# =============================================================================

TUTOR_SYSTEM_PROMPT = (
    "You are a direct, helpful tutor. Give clear, concise feedback without excessive "
    "encouragement. Keep responses under 2 sentences and focus on next steps or specific guidance."
)

BRIEF = "(1-2 sentences max)"

TUTOR_ACTION_PROMPTS = {
    "concept_expanded": "The student wants a deeper explanation. Briefly acknowledge and mention providing more detail",
    "examples_requested": "The student wants more examples. Briefly acknowledge and mention providing examples",
    "explain_more": "The student wants more explanation. Briefly acknowledge and mention providing additional details",
    "question_requested": "The student wants to ask a question. Give brief acknowledgment and encourage them to ask",
    "detail_expanded": "The student expanded a detail section for more information. Give brief acknowledgment",
    "next_question": "The student wants another question. Give brief acknowledgment about providing more practice",
    "next_exercise": "The student wants another exercise. Give brief acknowledgment about providing more practice",
    "next_problem": "The student wants another problem. Give brief acknowledgment about providing more practice",
}

RESET_ACTIONS = frozenset(
    {"reset_question", "fill_blank_reset", "drag_drop_reset", "solver_reset", "quiz_reset", "graph_reset"}
)

# =============================================================================
# Welcome & Direct Answers
# =============================================================================

WELCOME_SYSTEM_PROMPT = (
    "You are a direct tutor. Create brief, informative welcome messages. Focus on current "
    "lesson and progress without excessive enthusiasm. Keep messages under 2 sentences."
)

WELCOME_BACK_PROMPT = """Create a brief welcome back message for a student returning to {subject}.

Context:
- Subject: {subject}
- Current lesson: {lesson_number} - "{title}"
- Progress: {correct}/{attempts} correct answers ({accuracy}% accuracy)
- Student is returning to continue learning

Create a direct message that:
1. States they're back to the subject
2. Mentions their current lesson
3. Optionally notes their progress if relevant

Keep it under 2 sentences. Be informative, not enthusiastic."""

WELCOME_NEW_PROMPT = """Create a welcome message for a student starting {subject}.

Context:
- Subject: {subject}
- Starting lesson: "{title}"
- New student beginning learning

Create a direct message that:
1. States they're starting the subject
2. Mentions the first lesson
3. Is informative but brief

Keep it under 2 sentences. Be clear and direct."""

EDUCATOR_SYSTEM_PROMPT = (
    "You are an expert educator. Provide direct, specific answers to educational questions. "
    "Focus on giving practical, actionable information rather than generic responses. "
    "Be comprehensive but concise."
)

DIRECT_ANSWER_PROMPT = """{context}.

Question: "{question}"

Provide a direct, specific, and helpful answer to this question. If it's asking for concepts or learning requirements:
- List specific topics, skills, or concepts needed
- Organize from fundamental to advanced
- Include practical learning tips
- Mention real-world applications where relevant

If it's asking for explanations:
- Give clear, direct explanations
- Use examples where helpful
- Connect to broader understanding

Avoid generic responses like "great question" or "let me help you learn." Instead, dive directly into answering the question with specific, educational content."""


# =============================================================================
# Prompt Builders
# =============================================================================


def structure_prompts(subject: str) -> tuple[str, str]:
    """(system, user) prompts for lesson structure analysis."""
    return STRUCTURE_SYSTEM_PROMPT.format(subject=subject), STRUCTURE_PROMPT.format(subject=subject)


def plan_prompts(subject: str, structure: PlanStructure) -> tuple[str, str]:
    """(system, user) prompts for the lesson plan call."""
    lesson_count = structure.recommended_lessons
    user = PLAN_PROMPT.format(
        subject=subject,
        lesson_count=lesson_count,
        complexity=structure.complexity.value,
        focus_areas=", ".join(structure.focus_areas) or "General",
        objectives=", ".join(structure.learning_objectives) or "Comprehensive understanding",
    )
    return PLAN_SYSTEM_PROMPT.format(lesson_count=lesson_count), user


def criteria_prompts(subject: str, complexity: str) -> tuple[str, str]:
    """(system, user) prompts for progress criteria derivation."""
    return (
        CRITERIA_SYSTEM_PROMPT.format(subject=subject),
        CRITERIA_PROMPT.format(subject=subject, complexity=complexity),
    )


def content_prompt(subject: str, lesson: Lesson, concept: ConceptInfo, content_type: str) -> str:
    """
    Build the content prompt for a lesson's current concept.

    Args:
        subject: Subject name
        lesson: Lesson the content belongs to
        concept: Concept the content should target
        content_type: Normalized content type (aliases already resolved)

    Returns:
        Formatted prompt string
    """
    context = CONTENT_CONTEXT.format(
        subject=subject,
        title=lesson.title,
        description=lesson.description,
        concept_name=concept.name,
        concept_difficulty=concept.difficulty.value,
        concept_description=concept.description or "no description",
    )
    template = CONTENT_PROMPTS.get(content_type, GENERIC_CONTENT_PROMPT)
    return template.format(
        context=context,
        title=lesson.title,
        concept_name=concept.name,
        content_type=content_type,
    )


def _flag(data: Any, key: str) -> bool | None:
    if isinstance(data, dict) and key in data:
        return bool(data[key])
    return None


def tutor_response_prompt(subject: str, action: str, data: Any, context: Any = None) -> str:
    """User prompt for a short tutor reply to a learner action."""
    base = f"You are tutoring a student in {subject}."

    if action == "needs_more_practice":
        return f"Student working on {subject} needs more practice. Give specific guidance on what to focus on {BRIEF}."
    if action == "continue_practicing":
        return f"Student is practicing {subject} but not ready to advance. Give brief, specific guidance on improvement {BRIEF}."
    if action in ("ready_for_practice", "ready_for_next"):
        return f"Student is ready to practice {subject}. Give brief acknowledgment and mention creating practice content {BRIEF}."

    if action == "answer_submitted":
        correct = _flag(data, "correct")
        if correct is None:
            return f"{base} The student submitted an answer. Give brief acknowledgment {BRIEF}."
        if correct:
            return f"{base} The student got an answer correct. Give brief confirmation and mention continuing {BRIEF}."
        return f"{base} The student got an answer wrong. Give brief feedback on trying again {BRIEF}."

    if action in ("fill_blank_submitted", "drag_drop_submitted"):
        exercise = "fill-in-the-blank" if action == "fill_blank_submitted" else "drag-and-drop"
        correct = _flag(data, "isCorrect")
        if correct is None:
            return f"{base} The student completed a {exercise} exercise. Give brief feedback {BRIEF}."
        if correct:
            return f"{base} The student correctly completed the {exercise} exercise. Give brief confirmation {BRIEF}."
        return f"{base} The student's {exercise} attempt needs work. Give brief encouragement {BRIEF}."

    if action == "quiz_submitted":
        if isinstance(data, dict) and "score" in data:
            score = data["score"]
            if isinstance(score, (int, float)) and score >= 80:
                return f"{base} The student scored {score}% on the quiz. Give brief congratulations {BRIEF}."
            return f"{base} The student scored {score}% on the quiz. Give brief encouragement to review and try again {BRIEF}."
        return f"{base} The student completed a quiz. Give brief feedback {BRIEF}."

    if action == "highlights_checked":
        if isinstance(data, dict) and "correctHighlights" in data:
            return (
                f"{base} The student highlighted {data['correctHighlights']} key points correctly. "
                f"Give brief feedback on their text analysis {BRIEF}."
            )
        return f"{base} The student completed a text highlighting exercise. Give brief feedback on their analysis {BRIEF}."

    if action in TUTOR_ACTION_PROMPTS:
        return f"{base} {TUTOR_ACTION_PROMPTS[action]} {BRIEF}."
    if action in RESET_ACTIONS:
        return f"{base} The student reset their exercise. Give brief encouragement to try again (1 sentence max)."
    if action == "quiz_started":
        return f"{base} The student started a quiz. Give brief encouragement (1 sentence max)."

    if action == "graph_control_changed":
        target = "graph controls"
        if isinstance(data, dict) and "parameter" in data:
            target = f"the {data['parameter']} on the graph"
        return f"{base} The student adjusted {target}. Give brief acknowledgment of their exploration {BRIEF}."

    if action == "contextual_content_request":
        topic = "a question"
        if isinstance(context, dict):
            lesson = context.get("lesson") or {}
            title = lesson.get("title") if isinstance(lesson, dict) else None
            topic = f"about {title or 'this topic'}"
        return f"{base} The student asked {topic}. Briefly acknowledge and mention creating relevant content {BRIEF}."

    return f'{base} The student performed action "{action}". Give a brief, direct response {BRIEF}.'


def welcome_prompt(
    subject: str,
    lesson_title: str,
    lesson_index: int,
    correct_answers: int,
    total_attempts: int,
    is_returning_user: bool,
) -> str:
    """User prompt for the welcome (or welcome back) message."""
    if not is_returning_user:
        return WELCOME_NEW_PROMPT.format(subject=subject, title=lesson_title)

    accuracy = round(correct_answers / total_attempts * 100) if total_attempts > 0 else 0
    return WELCOME_BACK_PROMPT.format(
        subject=subject,
        lesson_number=lesson_index + 1,
        title=lesson_title,
        correct=correct_answers,
        attempts=total_attempts,
        accuracy=accuracy,
    )


def direct_answer_prompt(
    question: str,
    subject: str | None = None,
    current_lesson: str | None = None,
    difficulty: str | None = None,
) -> str:
    """User prompt for answering a free-form learner question."""
    context = f"The student is learning {subject}" if subject else "General educational question"
    if current_lesson:
        context += f' and is currently on the lesson: "{current_lesson}"'
    if difficulty:
        context += f" at {difficulty} level"
    return DIRECT_ANSWER_PROMPT.format(context=context, question=question)

"""
Prompt templates for content generation.

Each template asks for a single JSON object so the response can be validated
against the matching model in generation.schemas.
"""

SYSTEM_PROMPT = """You are a curriculum designer building a gamified, level-based learning path.
Always respond with a single JSON object and nothing else."""


DECK_PROMPT = """Generate exactly {count} educational flashcards for the topic: "{topic} - {description}".
Put the term or question on the front and the definition or answer on the back.

Respond with JSON:
{{"cards": [{{"front": "...", "back": "..."}}]}}"""


EXAM_PROMPT = """Generate exactly {count} mixed assessment questions to test knowledge on: "{topic}".
Mix the types 'mcq', 'fill_gap' and 'short_answer'.
For mcq, provide 4 options and the 0-based index of the correct option as a string in "correctAnswer" (e.g. "0", "1").
For fill_gap and short_answer, put the expected text in "correctAnswer" and leave "options" empty.
Give a short "explanation" of why the answer is correct.

Respond with JSON:
{{"questions": [{{"type": "mcq", "question": "...", "options": ["..."], "correctAnswer": "0", "explanation": "..."}}]}}"""


EXTENSION_PROMPT = """The student has completed the learning path "{path_title}" ending with "{last_node_title}".
Create {count} NEW, ADVANCED level nodes to extend this path. Continue the progression in difficulty.

Respond with JSON:
{{"nodes": [{{"title": "...", "description": "...", "type": "theory"}}]}}
Allowed types: theory, practice, challenge."""


PATH_PROMPT = """Create a progressive learning path (one level after another) for the topic: "{topic}".
The learner's current level is {level}. Their goal is: "{goal}". They can study {daily_commitment} per day.
Adjust the difficulty and starting point accordingly; if Advanced, skip the basics.
Generate {min_nodes} to {max_nodes} nodes.

Respond with JSON:
{{"nodes": [{{"title": "...", "description": "...", "type": "theory"}}]}}
Allowed types: theory, practice, challenge."""


def deck_prompt(topic: str, description: str, count: int) -> str:
    return DECK_PROMPT.format(topic=topic, description=description, count=count)


def exam_prompt(topic: str, count: int) -> str:
    return EXAM_PROMPT.format(topic=topic, count=count)


def extension_prompt(path_title: str, last_node_title: str, count: int) -> str:
    return EXTENSION_PROMPT.format(
        path_title=path_title, last_node_title=last_node_title, count=count
    )


def path_prompt(
    topic: str,
    level: str,
    goal: str,
    daily_commitment: str,
    min_nodes: int = 5,
    max_nodes: int = 7,
) -> str:
    return PATH_PROMPT.format(
        topic=topic,
        level=level,
        goal=goal or "general understanding",
        daily_commitment=daily_commitment or "some time",
        min_nodes=min_nodes,
        max_nodes=max_nodes,
    )

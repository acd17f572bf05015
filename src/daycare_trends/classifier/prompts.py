"""Prompt templates and output schema hints for classifier tasks."""

from __future__ import annotations

from daycare_trends.models import ACTIVITY_CATEGORIES, TRAINING_CATEGORIES

FRIEND_EXTRACTION_TASK = "friend_extraction"
CATEGORIZATION_TASK = "categorization"

FRIEND_EXTRACTION_PROMPT = """\
Extract all dog friend names mentioned in this daycare report comment.
Return first names only, in proper case. If no friends are mentioned, return
an empty list.

Comment: "{comment}"
"""

CATEGORIZATION_PROMPT = """\
You are analyzing a dog daycare report card. Categorize the following
activities and training skills.

ACTIVITIES to categorize: {activities}

Activity categories (an activity may belong to several):
- playtime: playing with toys, buddies, or general play
- socialization: interacting with other dogs or making friends
- rest: napping, resting, quiet time
- outdoor: outside activities, pool parties, outdoor play
- enrichment: brain games, puzzles, nose work, mental stimulation
- training: one-on-one trainer time, agility equipment, structured training
- special_event: birthday parties, special celebrations

TRAINING SKILLS to categorize: {training}

Training categories (exactly one per skill):
- obedience_commands: sit, down, stand, recall, name recognition
- impulse_control_and_focus: impulse control, focus work, settle down exercises
- physical_skills: agility, balancing, coordination, confidence building
- handling_and_manners: collar grab, handling, loose-leash walking, boundaries,
  place work, crate training
- advanced_training: sequences, recall with distractions, hands-free work
- fun_skills: trick training, nose targeting, playful skills

Use only the category names listed above.
"""

FRIEND_EXTRACTION_OUTPUT_SCHEMA = """\
{
  "friends": ["<first name>", "..."]
}"""

CATEGORIZATION_OUTPUT_SCHEMA = """\
{
  "activities": [
    {"item": "<activity exactly as given>", "categories": ["<activity category>", "..."]}
  ],
  "training": [
    {"item": "<training skill exactly as given>", "category": "<training category>"}
  ]
}"""

SCHEMAS_BY_TASK_TYPE: dict[str, str] = {
    FRIEND_EXTRACTION_TASK: FRIEND_EXTRACTION_OUTPUT_SCHEMA,
    CATEGORIZATION_TASK: CATEGORIZATION_OUTPUT_SCHEMA,
}

RECORD_FRIENDS_TOOL: dict[str, object] = {
    "name": "record_friends",
    "description": "Record the names of dog friends mentioned in the daycare report comment.",
    "input_schema": {
        "type": "object",
        "properties": {
            "friends": {
                "type": "array",
                "items": {
                    "type": "string",
                    "description": "First name only of a dog friend, in proper case",
                },
                "description": "Dog friend names mentioned in the comment",
            },
        },
        "required": ["friends"],
    },
}

CATEGORIZE_TOOL: dict[str, object] = {
    "name": "categorize_activities",
    "description": "Categorize dog daycare activities and training skills.",
    "input_schema": {
        "type": "object",
        "properties": {
            "activities": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "item": {"type": "string", "description": "The activity name"},
                        "categories": {
                            "type": "array",
                            "items": {"type": "string", "enum": list(ACTIVITY_CATEGORIES)},
                        },
                    },
                    "required": ["item", "categories"],
                },
            },
            "training": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "item": {"type": "string", "description": "The training skill name"},
                        "category": {"type": "string", "enum": list(TRAINING_CATEGORIES)},
                    },
                    "required": ["item", "category"],
                },
            },
        },
        "required": ["activities", "training"],
    },
}

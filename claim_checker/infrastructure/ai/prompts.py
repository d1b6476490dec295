"""Prompts shared by the AI providers."""

from typing import Dict, List, Sequence, Tuple

from ...domain.models.item import Item

CLAIM_SYSTEM_PROMPT = """
You are an ownership verification engine for a campus lost-and-found service.
Analyze a claim against a found item and determine the likelihood that the
claimant is the true owner.

Evaluation criteria:
1. Specificity of answers: vague answers versus precise details
2. Consistency: do all answers describe the same item?
3. Knowledge depth: does the claimant know details not visible in photos?
4. Red flags: generic answers, contradictions, answers that do not fit the item type
5. Positive indicators: unique details, serial numbers, specific damage descriptions

Respond ONLY with a JSON object:
{
    "verificationScore": <number 0-100>,
    "confidence": "<high|medium|low>",
    "riskLevel": "<low|medium|high>",
    "reasoning": "<detailed analysis>",
    "breakdown": [
        {
            "category": "<aspect being evaluated>",
            "score": <number>,
            "maxScore": <max points>,
            "aiInsight": "<specific insight about this aspect>"
        }
    ],
    "overallAssessment": "<1-2 sentence summary>",
    "redFlags": ["<any concerns>"],
    "positiveIndicators": ["<evidence supporting genuine ownership>"]
}
"""

MATCH_SYSTEM_PROMPT = """
You are a matchmaking engine for a campus lost-and-found service. You receive
a reported item and a list of candidate items. Score each candidate on how
likely it is the SAME physical item.

Scoring criteria:
- Name similarity (0-25): same item type, synonyms, abbreviations
- Description match (0-30): colors, brands, sizes, unique identifiers, damage
- Location proximity (0-20): same building or nearby; items move on campus
- Category fit (0-15): exact match or plausible cross-category
- Contextual clues (0-10): any implicit evidence they are the same item

Respond ONLY with JSON of the form:
{
    "matches": [
        {
            "id": "<candidate id>",
            "score": <number 0-100>,
            "reasoning": "<brief explanation>",
            "matchedAttributes": ["<matched feature>"]
        }
    ]
}
Sort by score descending. Only include candidates with score >= 25.
"""

ENHANCE_SYSTEM_PROMPT = """
You are a helpful assistant for a campus lost-and-found service. Given an item
report, suggest an improved description and keywords that would maximize the
chance of matching it with its counterpart (a lost item matching a found item
or vice versa).

Respond ONLY with a JSON object:
{
    "enhancedDescription": "<improved description>",
    "suggestedKeywords": ["<keyword>"],
    "tips": ["<what the reporter could add>"]
}
"""

PING_MESSAGES = [
    {"role": "system", "content": 'Respond with exactly: {"status":"ok","model":"<your model name>"}'},
    {"role": "user", "content": "ping"},
]


def build_claim_messages(
    item: Item,
    claim_description: str,
    security_qa: Sequence[Tuple[str, str]],
) -> List[Dict[str, str]]:
    """Build the chat messages for a claim assessment."""
    qa_list = "\n\n".join(f"  Q: {question}\n  A: {answer}" for question, answer in security_qa)
    user_prompt = (
        "Found Item:\n"
        f"- Name: {item.name}\n"
        f"- Category: {item.category.value}\n"
        f"- Description: {item.description}\n"
        f"- Location: {item.location.value}\n"
        f"- Date Found: {item.date_found}\n\n"
        "Claimant's Identification Description:\n"
        f"{claim_description or '(not provided)'}\n\n"
        "Security Question Answers:\n"
        f"{qa_list}\n\n"
        "Analyze this claim and assess ownership likelihood."
    )
    return [
        {"role": "system", "content": CLAIM_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def build_batch_match_messages(new_item: Item, candidates: Sequence[Item]) -> List[Dict[str, str]]:
    """Build the chat messages for scoring candidates against a new report."""
    candidate_list = "\n".join(
        f"  {index}. [ID: {candidate.id}] \"{candidate.name}\" | Category: {candidate.category.value} "
        f"| Location: {candidate.location.value} | Desc: {candidate.description}"
        for index, candidate in enumerate(candidates, start=1)
    )
    user_prompt = (
        f"Reported {new_item.item_type.value.upper()} item:\n"
        f"- Name: {new_item.name}\n"
        f"- Category: {new_item.category.value}\n"
        f"- Location: {new_item.location.value}\n"
        f"- Description: {new_item.description}\n\n"
        "Candidate items to match against:\n"
        f"{candidate_list}\n\n"
        "Score each candidate and return matches."
    )
    return [
        {"role": "system", "content": MATCH_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def build_enhance_messages(name: str, category: str, description: str) -> List[Dict[str, str]]:
    """Build the chat messages for improving an item report."""
    user_prompt = (
        f"Item: {name}\n"
        f"Category: {category}\n"
        f"Current Description: {description or '(none provided)'}\n\n"
        "Enhance this description and suggest keywords."
    )
    return [
        {"role": "system", "content": ENHANCE_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]

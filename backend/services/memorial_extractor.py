"""
MemorialExtractor - structured memorial fields from search context.

Forces a single function call so the model answers with JSON arguments
matching the memorial form. Only the provided context may be used; fields the
context does not mention come back as null.
"""
import json
import logging
from typing import Dict

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

FUNCTION_NAME = "get_memorial_information"

SYSTEM_PROMPT = (
    "You are a data extraction assistant. Using ONLY the provided context, "
    "extract the required information. Do not use any outside knowledge. If "
    "the context does not contain a piece of information, return null for "
    "that field."
)

MEMORIAL_FUNCTION = {
    "type": "function",
    "function": {
        "name": FUNCTION_NAME,
        "description": "Extract detailed memorial information from the provided context.",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "date_of_birth": {"type": "string", "description": "YYYY-MM-DD"},
                "date_of_death": {"type": "string", "description": "YYYY-MM-DD"},
                "age": {"type": "number"},
                "place_of_birth": {"type": "string"},
                "place_of_death": {"type": "string"},
                "nationality": {"type": "string"},
                "story": {"type": "string"},
                "sources": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "url": {"type": "string"},
                            "title": {"type": "string"},
                        },
                        "required": ["url", "title"],
                    },
                },
            },
            "required": ["name", "date_of_death", "story", "sources"],
        },
    },
}


class ExtractionError(Exception):
    """The model returned no usable memorial data."""


class MemorialExtractor:
    """OpenAI function-calling extractor"""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o"):
        self.client = client
        self.model = model

    async def extract(self, name: str, context: str) -> Dict:
        """
        Extract memorial fields for `name` from `context`.

        Returns:
            Dict with the function-call arguments (sources always a list)

        Raises:
            ExtractionError if the model made no tool call or sent invalid JSON
        """
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        f"CONTEXT:\n---\n{context}\n---\n"
                        "Based on the context above, please provide the full name, date of birth, "
                        "date of death, age, place of birth, place of death, nationality, a brief "
                        f"story, and a list of all sources for {name}."
                    ),
                },
            ],
            tools=[MEMORIAL_FUNCTION],
            tool_choice={"type": "function", "function": {"name": FUNCTION_NAME}},
        )

        tool_calls = completion.choices[0].message.tool_calls or []
        if not tool_calls:
            raise ExtractionError("The AI could not extract information.")

        try:
            data = json.loads(tool_calls[0].function.arguments)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Invalid tool arguments for {name}: {e}")
            raise ExtractionError("The AI could not extract information.") from e

        if not isinstance(data.get("sources"), list):
            data["sources"] = []

        logger.info(f"🤖 Extracted memorial fields for '{name}': {sorted(k for k, v in data.items() if v)}")
        return data

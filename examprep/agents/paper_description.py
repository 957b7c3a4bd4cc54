"""Agent that drafts short catalogue descriptions for past papers."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field
from pydantic_ai import Agent

from examprep.agents.model_factory import build_model
from examprep.config import ExamPrepSettings
from examprep.logging import get_logger
from examprep.utils.retry import retry_async

log = get_logger("paper_description")

INSTRUCTIONS = (
    "You are an expert content writer. Given a past paper's title, its category and, "
    "when known, its year and session, write a concise and informative description of "
    "about 2-3 sentences for a website that offers past question papers for study. "
    "Use simple and easy-to-understand language."
)


class PaperDescriptionRequest(BaseModel):
    title: str
    category_name: str
    year: int | None = None
    session: str | None = None


class PaperDescription(BaseModel):
    description: str = Field(description="A concise description of about 2-3 sentences.")


def build_prompt(request: PaperDescriptionRequest) -> str:
    lines = [f"Paper Title: {request.title}", f"Category: {request.category_name}"]
    if request.year:
        lines.append(f"Year: {request.year}")
    if request.session:
        lines.append(f"Session: {request.session}")
    return "\n".join(lines)


@dataclass(slots=True)
class PaperDescriptionAgent:
    agent: Agent[None, PaperDescription]
    max_attempts: int = 3

    @classmethod
    def build(cls, settings: ExamPrepSettings) -> PaperDescriptionAgent:
        agent = Agent[None, PaperDescription](
            model=build_model(settings.llm),
            output_type=PaperDescription,
            instructions=INSTRUCTIONS,
            model_settings={"timeout": float(settings.llm.request_timeout_seconds)},
        )
        return cls(agent)

    async def describe(self, request: PaperDescriptionRequest) -> str:
        prompt = build_prompt(request)

        async def _run():
            return await self.agent.run(prompt)

        result = await retry_async(
            _run,
            max_attempts=self.max_attempts,
            logger=log,
            operation_name="paper_description",
        )
        return result.output.description.strip()


__all__ = [
    "PaperDescription",
    "PaperDescriptionAgent",
    "PaperDescriptionRequest",
    "build_prompt",
]

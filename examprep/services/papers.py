"""Past papers and their ordered questions."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.agents.paper_description import PaperDescriptionRequest
from examprep.db.models.core import Paper, PaperQuestion, Question
from examprep.domain.models import GeneratedQuestion
from examprep.logging import get_logger
from examprep.services.exceptions import PaperNotFound

log = get_logger("papers")


class DescriptionWriter(Protocol):
    async def describe(self, request: PaperDescriptionRequest) -> str: ...


class PaperService:
    def __init__(self, session: AsyncSession, describer: DescriptionWriter | None = None) -> None:
        self.session = session
        self.describer = describer

    async def questions_for_paper(self, paper_id: int) -> list[GeneratedQuestion]:
        stmt = (
            select(PaperQuestion, Question)
            .join(Question, Question.id == PaperQuestion.question_id)
            .where(PaperQuestion.paper_id == paper_id)
            .order_by(PaperQuestion.order, PaperQuestion.id)
        )
        rows = (await self.session.execute(stmt)).all()
        return [
            GeneratedQuestion(
                id=question.id,
                question_text=question.question_text,
                type=question.type,
                options=question.options,
                correct_answer=question.correct_answer,
                explanation=question.explanation,
                question_category_id=question.question_category_id,
                order=link.order,
                link_id=str(link.id),
            )
            for link, question in rows
        ]

    async def add_question(self, paper_id: int, question: Question, order: int) -> PaperQuestion:
        if question.id is None:
            self.session.add(question)
            await self.session.flush()
        link = PaperQuestion(paper_id=paper_id, question_id=question.id, order=order)
        self.session.add(link)
        await self.session.flush()
        return link

    async def generate_description(self, paper_id: int, *, overwrite: bool = False) -> str:
        """Draft a description for the paper unless it already has one."""

        paper = await self.session.get(Paper, paper_id)
        if paper is None:
            raise PaperNotFound(f"Paper {paper_id} not found.")
        if paper.description and not overwrite:
            return paper.description
        if self.describer is None:
            raise RuntimeError("No description writer configured.")

        paper.description = await self.describer.describe(
            PaperDescriptionRequest(
                title=paper.title,
                category_name=paper.category_name or "General",
                year=paper.year,
                session=paper.session,
            )
        )
        await self.session.flush()
        log.info("paper_description_generated", paper_id=paper.id)
        return paper.description


__all__ = ["DescriptionWriter", "PaperService"]

"""Engagement helpers for reviewing and answering leads.

Generates plain-text reply drafts for a lead's post, refines an existing
draft from a free-form instruction, and summarises a post for a busy
reader. Nothing is posted to Reddit: drafts are returned for the user to
copy, edit and send themselves.

Usage:
    service = EngagementService(backend=get_generative_backend())

    draft = await service.generate_reply(lead, fun_mode=True)
    better = await service.refine_reply(draft, "Shorter, mention pricing")
    summary = await service.summarize_lead(lead)
"""

import logging
from typing import Optional

from redlead_core.domain.services.inference import GenerativeBackend, InferenceError
from redlead_core.domain.stores.base import LeadRecord

logger = logging.getLogger(__name__)


GENERATION_MAX_TOKENS = 800
POST_CHAR_LIMIT = 4000


# =============================================================================
# EXCEPTIONS
# =============================================================================


class EngagementError(Exception):
    """Base exception for engagement helpers."""

    pass


class EngagementValidationError(EngagementError):
    """Input is missing the text to work on."""

    pass


class GenerationError(EngagementError):
    """No backend produced usable text."""

    pass


# =============================================================================
# PROMPTS
# =============================================================================


PLAIN_TEXT_RULES = """Constraints:
- Output STRICTLY PLAIN TEXT.
- ABSOLUTELY NO Markdown formatting: NO bold, NO italics, NO headers, NO bullet points, NO numbered lists.
- Write approx 200-300 words in natural paragraphs.
- NO hashtags, NO emojis.
- NO AI-speak (e.g., "I hope this helps", "As an AI")."""

REPLY_SYSTEM_PROMPT = """You are a helpful, knowledgeable human engaging in a Reddit discussion.
Your goal is to write a comprehensive, high-value reply to the post.

Style: {style}.

{rules}
- Use natural transitions ("First", "Additionally", "Finally") instead of lists.
- Act like a real person sharing experience or advice, NOT an AI.
- If providing a solution, explain the why and the how."""

REFINE_SYSTEM_PROMPT = """You are an expert editor. Refine the following Reddit reply based on the user's instruction.
Keep the helpful core message but expand on details if needed. The style should stay natural and conversational.

{rules}"""

SUMMARY_SYSTEM_PROMPT = """You are a helpful human narrator. Summarize the following Reddit post in detail.
Explain the key points, the author's specific problem and context, and any opportunities.
Write as if explaining it to a busy colleague who needs the full picture without reading the post.

{rules}"""

FUN_STYLE = "Casual, witty, and engaging"
PROFESSIONAL_STYLE = "Professional, thorough, and empathetic"


def post_content(lead: LeadRecord) -> str:
    """Title and body of a lead's post as one prompt block."""
    body = (lead.body_text or "").strip()
    content = f"Title: {lead.title}"
    if body:
        content += f"\n\n{body[:POST_CHAR_LIMIT]}"
    return content


# =============================================================================
# SERVICE
# =============================================================================


class EngagementService:
    """Drafts, refines and summarises through a generative backend."""

    def __init__(self, backend: GenerativeBackend, max_tokens: int = GENERATION_MAX_TOKENS):
        self.backend = backend
        self.max_tokens = max_tokens

    async def close(self) -> None:
        await self.backend.close()

    async def _generate(self, task: str, system_prompt: str, user_prompt: str) -> str:
        try:
            text = await self.backend.complete(
                system_prompt,
                user_prompt,
                max_tokens=self.max_tokens,
            )
        except InferenceError as e:
            logger.error(f"{task} failed: {e}")
            raise GenerationError(f"{task} failed: {e}") from e

        text = (text or "").strip()
        if not text:
            logger.warning(f"{task} produced no text")
            raise GenerationError(f"{task} failed: no completion from any backend")
        return text

    async def generate_reply(self, lead: LeadRecord, fun_mode: bool = False) -> str:
        """Draft a reply to a lead's post.

        Raises:
            GenerationError: If no backend produced a reply
        """
        system_prompt = REPLY_SYSTEM_PROMPT.format(
            style=FUN_STYLE if fun_mode else PROFESSIONAL_STYLE,
            rules=PLAIN_TEXT_RULES,
        )
        return await self._generate(
            "Reply generation", system_prompt, f"Post Content: {post_content(lead)}"
        )

    async def refine_reply(self, draft: str, instruction: Optional[str] = None) -> str:
        """Rewrite a draft following an instruction.

        Raises:
            EngagementValidationError: If the draft is blank
            GenerationError: If no backend produced a refinement
        """
        draft = (draft or "").strip()
        if not draft:
            raise EngagementValidationError("Original reply text is required for refinement")

        instruction = (instruction or "").strip() or "Improve clarity and flow."
        system_prompt = REFINE_SYSTEM_PROMPT.format(rules=PLAIN_TEXT_RULES)
        return await self._generate(
            "Reply refinement",
            system_prompt,
            f"Original: {draft}\nInstruction: {instruction}",
        )

    async def summarize_lead(self, lead: LeadRecord) -> str:
        """Summarise a lead's post.

        Raises:
            EngagementValidationError: If the post has no text at all
            GenerationError: If no backend produced a summary
        """
        if not (lead.title or "").strip() and not (lead.body_text or "").strip():
            raise EngagementValidationError("No content provided to summarize")

        system_prompt = SUMMARY_SYSTEM_PROMPT.format(rules=PLAIN_TEXT_RULES)
        return await self._generate("Summary generation", system_prompt, post_content(lead))


__all__ = [
    "EngagementService",
    "EngagementError",
    "EngagementValidationError",
    "GenerationError",
    "post_content",
]

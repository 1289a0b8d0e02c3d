"""Prompt Builder for retrieval-augmented chat.

Turns retrieved matches into a context block and wraps it, together with the
user's question, into the two-message conversation sent to the completion
provider.
"""

from typing import Dict, List, Optional, Sequence

from rag_chatbot.config import EmptyContextPolicy, RetrievalSettings
from rag_chatbot.models.vector import Match
from rag_chatbot.utils.logging import get_logger

logger = get_logger("prompt_builder")


def select_context_texts(matches: Sequence[Match], threshold: float) -> List[str]:
    """Texts of matches scoring strictly above ``threshold``, in index order."""
    return [m.text for m in matches if m.score > threshold and m.text]


class PromptBuilder:
    """Builds the context block and message list for a chat request.

    The prompt structure is:
    1. System instruction (fixed per deployment)
    2. User message: ``Context:`` block followed by ``Question:``
    """

    def __init__(self, settings: RetrievalSettings):
        self.settings = settings

    def build_context(self, matches: Sequence[Match]) -> str:
        """
        Join the texts of matches above the score threshold.

        When nothing clears the threshold the empty-context policy decides:
        ``placeholder`` uses the configured placeholder, ``best_match`` uses the
        top-scoring match's text regardless of score.

        Args:
            matches: Index results, best first

        Returns:
            str: Non-empty context block
        """
        texts = select_context_texts(matches, self.settings.score_threshold)
        if texts:
            prefix = self.settings.context_line_prefix
            return "\n".join(f"{prefix}{text}" for text in texts)

        logger.debug(
            f"No matches above threshold {self.settings.score_threshold} "
            f"(retrieved={len(matches)}), policy={self.settings.empty_context_policy.value}"
        )
        if self.settings.empty_context_policy == EmptyContextPolicy.BEST_MATCH:
            best = self._best_match(matches)
            if best is not None:
                return best.text
        return self.settings.empty_context_placeholder

    @staticmethod
    def _best_match(matches: Sequence[Match]) -> Optional[Match]:
        candidates = [m for m in matches if m.text]
        if not candidates:
            return None
        return max(candidates, key=lambda m: m.score)

    def build_user_message(self, context: str, question: str) -> str:
        return f"Context:\n{context}\n\nQuestion: {question}"

    def build_messages(self, context: str, question: str) -> List[Dict[str, str]]:
        """
        Build the conversation sent to the completion provider.

        Example:
            >>> builder = PromptBuilder(RetrievalSettings())
            >>> builder.build_messages("refund policy", "what is your refund policy?")[1]["content"]
            'Context:\\nrefund policy\\n\\nQuestion: what is your refund policy?'
        """
        return [
            {"role": "system", "content": self.settings.system_prompt},
            {"role": "user", "content": self.build_user_message(context, question)},
        ]

"""
QuestionAnsweringPipeline - Extractive question answering

For: Any ModelForQuestionAnswering (start/end logits)
"""

import logging
from typing import Any

from ..config import PIPELINE_DEFAULTS
from ..decoders.question_answering import decode_answers
from ..decoders.unwrap import UnwrapPolicy, unwrap
from ..types import PipelineTask
from .base import BasePipeline

logger = logging.getLogger(__name__)


class QuestionAnsweringPipeline(BasePipeline):
    """
    Question answering pipeline.

    Answers are token spans of the context. ``topk == 1`` returns a single
    answer dict even for batched questions; otherwise a flat list of answers.
    """

    unwrap_policy = UnwrapPolicy.FIRST_IF_TOPK_1

    def pipeline_type(self) -> str:
        return PipelineTask.QUESTION_ANSWERING.value

    async def invoke(self, question: Any, context: Any,
                     topk: int = PIPELINE_DEFAULTS.question_answering_topk) -> Any:
        """
        Answer question(s) from context(s).

        Args:
            question: A question or a list of questions
            context: The matching context or list of contexts
            topk: Number of answers per question

        Returns:
            {'answer', 'score'} dict when ``topk == 1``, else a list of them
        """
        inputs = self.tokenizer(question, text_pair=context, padding=True)
        outputs = await self.model(inputs)

        def decode_sequence(ids):
            return self.tokenizer.decode(ids, skip_special_tokens=True)

        answers = decode_answers(
            outputs.start_logits,
            outputs.end_logits,
            inputs["input_ids"],
            self.tokenizer.sep_token_id,
            decode_sequence,
            topk=topk,
            attention_mask=inputs.get("attention_mask"),
        )
        logger.debug(f"[QuestionAnswering] Found {len(answers)} answer(s)")

        return unwrap(answers, self.unwrap_policy, batched=True, topk=topk)

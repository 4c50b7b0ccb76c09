"""
Insurance Chat Service - message processing pipeline.

One pass per user message:
1. Categorize the question (keyword signals)
2. Extract context and merge it into the session's running context
3. Ask the model for a reply, enhanced with knowledge base information
4. Fall back to the offline response generator when the model is
   disabled, unresolvable or fails
5. Derive follow-up suggestions
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from insurance_chat.analytics import ChatAnalytics, ChatMetrics
from insurance_chat.config import DEFAULT_CONFIG, ChatConfig
from insurance_chat.context_extractor import extract_context
from insurance_chat.knowledge_base import KnowledgeBase
from insurance_chat.llm_client import LLMClient, LLMError
from insurance_chat.mappings import (
    FALLBACK_MARKER,
    FOLLOW_UP_QUESTIONS,
    GENERIC_FOLLOW_UP_QUESTIONS,
    find_policy_type,
    find_term,
)
from insurance_chat.output_cleaner import clean_output
from insurance_chat.prompt_builder import build_prompt
from insurance_chat.query_classifier import categorize_question
from insurance_chat.response_generator import ResponseGenerator
from insurance_chat.schemas import (
    ChatReply,
    ExtractedContext,
    KnowledgeEntry,
    PolicyInfo,
    QuestionCategory,
    ReplySource,
    TurnStage,
)

logger = logging.getLogger(__name__)

MAX_FOLLOW_UPS = 3

PROCESSING_ERROR_MESSAGE = (
    "Sorry, I'm having trouble answering that question about insurance. "
    "Please try rephrasing it or ask something else."
)

StageCallback = Callable[[TurnStage], None]


class InsuranceChatService:
    """
    Orchestrates categorization, context extraction and reply generation.
    Holds no per-session state: the caller owns the context accumulator.
    """

    def __init__(
        self,
        config: ChatConfig = DEFAULT_CONFIG,
        llm: Optional[LLMClient] = None,
        knowledge_base: Optional[KnowledgeBase] = None,
        analytics: Optional[ChatAnalytics] = None,
        response_generator: Optional[ResponseGenerator] = None,
    ):
        """
        Args:
            config: Model and generation settings.
            llm: Model client. Built from the config when omitted.
            knowledge_base: Term table. The bundled one when omitted.
            analytics: Interaction tracker. Nothing is tracked when omitted.
            response_generator: Offline reply generator.
        """
        self.config = config
        self.llm = llm or LLMClient(
            model=config.model,
            base_url=config.base_url,
            timeout=config.request_timeout,
        )
        self.knowledge_base = knowledge_base or KnowledgeBase()
        self.analytics = analytics
        self.response_generator = response_generator or ResponseGenerator(self.knowledge_base)

    # =============================================================
    # PIPELINE
    # =============================================================

    def respond(
        self,
        query: str,
        context: Optional[ExtractedContext] = None,
        model_override: Optional[str] = None,
        history: Optional[list[str]] = None,
        on_stage: Optional[StageCallback] = None,
        session_id: Optional[str] = None,
    ) -> ChatReply:
        """
        Run the pipeline once for a user message.

        Args:
            query: The user's message.
            context: Context accumulated over earlier turns of the session.
            model_override: Model to use instead of the configured one.
                Setting it enables the model path even when use_ai is off.
            history: Earlier transcript texts, oldest first.
            on_stage: Called with each TurnStage as the pass advances.
            session_id: Used to attribute analytics.

        Returns:
            ChatReply carrying the reply text, category, follow-up suggestions,
            reply source and the merged context.

        Model failures never escape: they trigger the offline fallback.
        Anything else propagates to the caller.
        """
        def advance(stage: TurnStage) -> None:
            if on_stage:
                on_stage(stage)

        start_time = time.time()

        advance(TurnStage.CATEGORIZING)
        category = self.categorize_question(query)

        advance(TurnStage.EXTRACTING_CONTEXT)
        extracted = self.extract_context(query, category)
        merged = (context or ExtractedContext()).merged(extracted)
        logger.info(f"Query category: {category.value}, context: {merged.known_fields()}")

        reply = None
        if self.config.use_ai or model_override:
            advance(TurnStage.GENERATING_AI)
            try:
                content = self._generate_with_model(query, merged, model_override)
                reply = ChatReply(
                    content=content,
                    category=category,
                    suggestions=self.generate_follow_up_questions(category, query),
                    source=ReplySource.AI,
                    context=merged,
                )
            except Exception as e:
                logger.warning(f"Falling back to knowledge base due to AI error: {e}")
        else:
            logger.info("AI is disabled, using knowledge base directly")

        if reply is None:
            advance(TurnStage.GENERATING_FALLBACK)
            formatted = self.response_generator.generate_response(
                user_query=query,
                previous_messages=history,
                user_data=merged,
            )
            reply = ChatReply(
                content=formatted.message,
                category=category,
                suggestions=formatted.suggestions or self.generate_follow_up_questions(category, query),
                source=ReplySource.KNOWLEDGE_BASE,
                context=merged,
                confidence=formatted.confidence,
            )

        advance(TurnStage.DONE)
        self._track(session_id, query, reply, time.time() - start_time)
        return reply

    def _generate_with_model(
        self,
        query: str,
        context: ExtractedContext,
        model_override: Optional[str] = None,
    ) -> str:
        model = self._resolve_model(model_override)
        logger.info(f"Using model: {model}")

        prompt = build_prompt(query, context)
        raw = self.llm.generate(
            prompt,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            model=model,
        )

        answer = clean_output(raw)
        if not answer:
            raise LLMError("Model returned an empty reply")

        return self.enhance_response_with_knowledge_base(answer, query, context)

    def _resolve_model(self, model_override: Optional[str] = None) -> str:
        """
        Pick the model to call from what the provider has available.

        Order: the requested model, then the client's default model, then
        the first available one.

        Raises:
            LLMError: If the provider cannot be queried or offers no models.
        """
        requested = model_override or self.config.model
        available = self.llm.list_models()

        if not available:
            raise LLMError("No models available from provider")

        if requested in available:
            return requested

        if self.llm.model in available:
            logger.warning(f"Model {requested} not available, using default model {self.llm.model}")
            return self.llm.model

        logger.warning(f"Model {requested} not available, using {available[0]}")
        return available[0]

    def enhance_response_with_knowledge_base(
        self,
        ai_response: str,
        query: str,
        context: ExtractedContext,
    ) -> str:
        """
        Append one sentence of policy or knowledge base information.

        Policy type information is preferred. When the reply already carries
        the policy description, the knowledge base definition for the query
        is tried instead. Nothing is appended when that is also present or
        the knowledge base has nothing specific on the query.
        """
        response_lower = ai_response.lower()

        policy_info = find_policy_type(context.policy_type) if context.policy_type else None
        if policy_info and policy_info.description.lower() not in response_lower:
            return f"{ai_response}\n\nAdditional information: {policy_info.description}"

        relevant_info = self.knowledge_base.find_relevant_information(query)
        if FALLBACK_MARKER in relevant_info or relevant_info.lower() in response_lower:
            return ai_response

        return f"{ai_response}\n\nAdditional information: {relevant_info}"

    # =============================================================
    # SUGGESTIONS & LOOKUPS
    # =============================================================

    def generate_follow_up_questions(self, category: QuestionCategory, query: str) -> list[str]:
        """
        Suggest follow-up questions for a turn.

        Args:
            category: Category of the current question.
            query: The current question.

        Returns:
            Up to 3 unique questions: topic questions for related knowledge
            base topics first, then the category's canned questions. The
            generic questions on error.
        """
        try:
            related_topics = self.knowledge_base.get_related_topics(query)
            questions = [f"What can you tell me about {topic}?" for topic in related_topics]

            for question in FOLLOW_UP_QUESTIONS.get(category, GENERIC_FOLLOW_UP_QUESTIONS):
                if question not in questions:
                    questions.append(question)

            return questions[:MAX_FOLLOW_UPS]
        except Exception as e:
            logger.error(f"Error generating follow-up questions: {e}")
            return list(GENERIC_FOLLOW_UP_QUESTIONS)

    def categorize_question(self, query: str) -> QuestionCategory:
        return categorize_question(query)

    def extract_context(
        self,
        query: str,
        category: Optional[QuestionCategory] = None,
    ) -> ExtractedContext:
        return extract_context(query, category)

    def search_knowledge_base(self, query: str) -> list[KnowledgeEntry]:
        try:
            return self.knowledge_base.search(query)
        except Exception as e:
            logger.error(f"Error searching knowledge base: {e}")
            return []

    def get_policy_information(self, policy_type: str) -> Optional[PolicyInfo]:
        return find_policy_type(policy_type)

    def get_term_definition(self, term: str) -> Optional[str]:
        """Glossary definition of a term, or None when unknown."""
        glossary_term = find_term(term)
        return glossary_term.definition if glossary_term else None

    def process_query(self, query: str, model_override: Optional[str] = None) -> str:
        """
        Answer a single question with no session context.

        Returns:
            The reply text, or a fixed apology if the pipeline fails.
        """
        try:
            return self.respond(query, model_override=model_override).content
        except Exception as e:
            logger.error(f"Error processing query: {e}")
            return PROCESSING_ERROR_MESSAGE

    def _track(
        self,
        session_id: Optional[str],
        query: str,
        reply: ChatReply,
        response_time: float,
    ) -> None:
        if self.analytics is None:
            return

        self.analytics.track_interaction(
            ChatMetrics(
                session_id=session_id or "anonymous",
                query_text=query,
                response_text=reply.content,
                response_time=response_time,
                confidence_score=reply.confidence,
                category=reply.category.value,
                source=reply.source.value,
            )
        )

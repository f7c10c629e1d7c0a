from typing import Dict, List, Optional

from utility.dto import Formality, TranslateRequest


class PromptManager:
    """
    Stateless builder for translation prompts.
    Everything it needs comes from the TranslateRequest, so the same request
    always produces the same messages.
    """

    REGISTER_RULES: Dict[Formality, str] = {
        Formality.SUPERIOR: "Use HONORIFIC and highly respectful language. Avoid casual or informal words.",
        Formality.STRANGER: "Use POLITE and professional language.",
        Formality.FRIEND: "Use CASUAL and relaxed language.",
        Formality.CHILD: "Use SIMPLE and friendly language that a child would easily understand.",
    }

    NO_CASUAL_LEVELS = (Formality.SUPERIOR, Formality.STRANGER)

    PRONOUN_CHOICES = "he/him, she/her, they/them, neutral"

    NOTES_GUIDANCE = (
        "EXPLAIN how formality was applied. For 'superior', specify how honorific speech was used. "
        "For 'stranger', mention polite forms. For 'friend', explain informal choices. "
        "If 'child', note simplifications."
    )

    # --------------------------------------------------
    # Static helpers
    # --------------------------------------------------
    @staticmethod
    def _dialect_clause(dialect: Optional[str]) -> str:
        return f" in the {dialect} dialect" if dialect else ""

    @classmethod
    def _formality_rules(cls, request: TranslateRequest) -> List[str]:
        if not request.formality:
            return ["Choose the most natural formality for the context."]

        rules = [f'STRICTLY follow this formality level: "{request.formality}".']
        level = request.formality_level
        if level is not None:
            rules.append(cls.REGISTER_RULES[level])
        return rules

    @classmethod
    def _negative_rules(cls, request: TranslateRequest) -> List[str]:
        rules = ["**DO NOT use casual language if the formality level is 'superior' or 'stranger'.**"]
        if request.formality_level in cls.NO_CASUAL_LEVELS:
            rules.append(
                f"**The formality level is '{request.formality_level.value}': "
                "casual, slangy or informal wording is NOT allowed anywhere in the translation.**"
            )
        return rules

    # --------------------------------------------------
    # Prompt construction
    # --------------------------------------------------
    @classmethod
    def build_translation_prompt(cls, request: TranslateRequest) -> str:
        """User instruction with the translation rules and the expected JSON template."""
        speaker = request.speaker_pronouns or "Detect if not provided"
        listener = request.listener_pronouns or "Detect if not provided"

        lines = [
            f"Translate the following text from {request.source_language} to "
            f"{request.target_language}{cls._dialect_clause(request.target_dialect)}.",
            "",
            "If the target language has a non-Latin script, also provide a **romanized version**.",
            "",
            "### **Translation Rules:**",
            "- **Use native slang, idioms, and cultural expressions as appropriate for the dialect.**",
            "- **Ensure the tone and rhythm match natural spoken language.**",
            "- **Formality Level:**",
        ]
        lines += [f"  {rule}" for rule in cls._formality_rules(request)]
        lines += [f"- {rule}" for rule in cls._negative_rules(request)]
        lines += [
            f"- **Adapt the translation to fit the speaker's pronouns ({speaker}).**",
            f"- **Use appropriate sentence structure based on the listener's pronouns ({listener}).**",
            "- **Do NOT provide markdown, code blocks, or extra formatting. Return only valid JSON.**",
            "",
            "### **Text to Translate:**",
            f'"{request.text}"',
            "",
            "### **Expected JSON Response (DO NOT include markdown or code blocks):**",
            cls._json_template(request),
        ]
        return "\n".join(lines)

    @classmethod
    def _json_template(cls, request: TranslateRequest) -> str:
        # Hand-written so the placeholders read as instructions, not as JSON strings to copy
        speaker = request.speaker_pronouns or cls.PRONOUN_CHOICES
        listener = request.listener_pronouns or cls.PRONOUN_CHOICES
        formality = request.formality or "auto-detected based on context"
        return (
            "{\n"
            '  "translation": "[translated text with native dialect]",\n'
            '  "romaji": "[romanized version, if applicable]",\n'
            f'  "detectedSpeakerPronouns": "[{speaker}]",\n'
            f'  "detectedListenerPronouns": "[{listener}]",\n'
            f'  "formalityUsed": "[{formality}]",\n'
            f'  "notes": "[{cls.NOTES_GUIDANCE}]"\n'
            "}"
        )

    @staticmethod
    def build_system_prompt() -> str:
        return (
            "You are a highly accurate translation assistant. "
            "Your primary goal is to provide natural, culturally appropriate translations that strictly "
            "follow the requested formality, dialect, and pronoun usage. "
            "Always respond in valid JSON format without any markdown or code blocks. "
            "If the formality level is 'superior' or 'stranger', do NOT use casual speech. "
            "If the dialect is specified, ensure the translation includes local expressions and slang "
            "used by native speakers."
        )

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------
    @classmethod
    def build_messages(cls, request: TranslateRequest) -> List[Dict[str, str]]:
        """The system + user pair sent to the chat-completion endpoint."""
        return [
            {"role": "system", "content": cls.build_system_prompt()},
            {"role": "user", "content": cls.build_translation_prompt(request)},
        ]

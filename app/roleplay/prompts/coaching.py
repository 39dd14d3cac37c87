COACHING_PROMPT_VERSION = "coaching_v1"
MAX_CONVERSATION_CHARS = 2000

SYSTEM_PROMPT = (
    "You are a sales coach. Analyze this sales roleplay conversation and provide constructive "
    "feedback on communication skills, persuasion techniques, and areas for improvement. "
    "Keep it concise and actionable."
)

SCENARIO_SYSTEM_PROMPT_TEMPLATE = """You are a sales coach. Analyze this roleplay performance and provide specific feedback on:

1. Product knowledge accuracy
2. Objection handling for the buyer's concerns
3. Discovery questions for understanding client needs
4. Explanation clarity of technical concepts
5. Business value demonstration

Be specific about what they did well and what to improve.

Scenario: {title}
Skill Area: {sales_skill_area}
Buyer Persona: {buyer_persona}"""

USER_PROMPT_TEMPLATE = "Please analyze this sales conversation:\n\n{conversation_text}"

FEEDBACK_FALLBACK = "AI analysis temporarily unavailable. Please try again later."

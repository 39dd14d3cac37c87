import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from .models import Scenario


logger = logging.getLogger("uvicorn.error")

BUILTIN_SCENARIOS: List[dict] = [
    {
        "scenario_id": "google_ads_skeptical_owner",
        "title": "Skeptical Owner: Google Ads Search",
        "description": "A local business owner who lost money on Google Ads before. Rebuild trust and uncover goals.",
        "category": "Objection Handling",
        "difficulty": "Hard",
        "objectives": [
            "Uncover current marketing goals and budget",
            "Address the past bad experience with evidence",
            "Connect campaign types to measurable results",
        ],
        "character_name": "Mike Johnson",
        "character_role": "Business Owner",
        "character_personality": "Busy, skeptical, results-oriented",
        "character_background": "Owns a local retail business, gets many sales calls, ran Search ads for two months last year",
        "business_vertical": "Local retail",
        "buyer_persona": "Cost-conscious small business owner",
        "focus_area": "Search campaigns and conversion tracking",
        "key_objections": [
            "I tried Google Ads before and lost money",
            "How do I know if my ads are working?",
            "My competitor's ads always show up first",
        ],
        "sales_skill_area": "Objection Handling",
        "instructions": "Reveal your monthly budget only if asked directly. Mention the failed campaign early.",
    },
    {
        "scenario_id": "elevator_pitch_google_ads",
        "title": "30 Second Elevator Pitch for Google Ads Search",
        "description": "Practice your elevator pitch to a marketing director interested in Google Ads Search campaigns.",
        "category": "Pitching",
        "difficulty": "Easy",
        "objectives": ["Clarity", "Value proposition", "Confidence", "Time management"],
        "character_name": "Sarah Chen",
        "character_role": "Marketing Director",
        "character_personality": "Professional, curious, time-conscious",
        "character_background": "Works at a mid-size e-commerce company looking to improve online visibility",
        "business_vertical": "E-commerce",
        "buyer_persona": "Data-driven marketing leader",
        "focus_area": "Search campaigns and ROAS",
        "key_objections": [
            "I only have a minute, what's the bottom line?",
            "Isn't Facebook advertising cheaper?",
        ],
        "sales_skill_area": "Value Proposition",
        "instructions": "Cut the seller off politely if they ramble for more than a few sentences.",
    },
    {
        "scenario_id": "cold_call_intro",
        "title": "Cold Call Introduction",
        "description": "Practice introducing yourself and your services in a cold call scenario.",
        "category": "Prospecting",
        "difficulty": "Medium",
        "objectives": ["Engagement", "Value proposition", "Objection handling"],
        "character_name": "Dana Ortiz",
        "character_role": "Operations Manager",
        "character_personality": "Polite but distracted, wants to get off the phone",
        "character_background": "Runs operations for a regional home-services company that relies on referrals",
        "business_vertical": "Home services",
        "buyer_persona": "Referral-dependent operator new to paid search",
        "focus_area": "Smart campaigns and budget optimization",
        "key_objections": [
            "We get all our work from referrals",
            "I don't understand all those bidding strategies",
        ],
        "sales_skill_area": "Discovery",
        "instructions": "Give short answers until the seller asks a good open question.",
    },
]


def _load_from_file(path: Path) -> List[Scenario]:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise ValueError(f"Scenario file {path} must contain a JSON array.")
    return [Scenario.model_validate(item) for item in payload]


@lru_cache(maxsize=1)
def get_scenarios() -> Dict[str, Scenario]:
    scenarios_file = os.getenv("SCENARIOS_FILE", "").strip()
    if scenarios_file:
        scenarios = _load_from_file(Path(scenarios_file))
        logger.info("scenarios_loaded source=%s count=%s", scenarios_file, len(scenarios))
    else:
        scenarios = [Scenario.model_validate(item) for item in BUILTIN_SCENARIOS]
    return {scenario.scenario_id: scenario for scenario in scenarios}


def get_scenario(scenario_id: Optional[str]) -> Optional[Scenario]:
    if not scenario_id:
        return None
    return get_scenarios().get(scenario_id)

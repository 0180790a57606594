"""
Built-in game content.

Plain data validated into a ContentCatalog by load_catalog(); deployments can
replace it wholesale with a JSON file via CATALOG_PATH.
"""

MINUTE_MS = 60 * 1000

DEFAULT_CONTENT = {
    "max_level": 20,
    "upgrade_points_per_level": 1,
    "xp_thresholds": {
        2: 100, 3: 220, 4: 360, 5: 520, 6: 700, 7: 900, 8: 1120, 9: 1360, 10: 1620,
        11: 1900, 12: 2200, 13: 2520, 14: 2860, 15: 3220, 16: 3600, 17: 4000,
        18: 4420, 19: 4860, 20: 5320,
    },
    "starting_cash": 5000,
    "starting_research_points": 0,
    "level_speed_percent_per_level": 1.0,
    "queue_backlog_per_rank": 1,
    "upgrades": {
        "queue": {"id": "queue", "name": "Queue Capacity", "description": "Max concurrent jobs",
                  "base": 1, "per_rank": 1, "max_rank": 8, "unit": "slots"},
        "staff": {"id": "staff", "name": "Staff Capacity", "description": "Max active hires and staff",
                  "base": 1, "per_rank": 1, "max_rank": 6, "unit": "hires"},
        "compute": {"id": "compute", "name": "Compute", "description": "Compute units for parallel jobs",
                    "base": 1, "per_rank": 1, "max_rank": 10, "unit": "CU"},
        "speed": {"id": "speed", "name": "Speed", "description": "Faster job completion",
                  "base": 0, "per_rank": 5, "max_rank": 10, "unit": "%"},
        "money_multiplier": {"id": "money_multiplier", "name": "Money Multiplier",
                             "description": "Cheaper jobs and richer payouts",
                             "base": 100, "per_rank": 5, "max_rank": 10, "unit": "%"},
    },
    "rank_gates": [
        {"min_rank": 0, "max_rank": 2, "required_level": 1},
        {"min_rank": 3, "max_rank": 4, "required_level": 6},
        {"min_rank": 5, "max_rank": 6, "required_level": 11},
        {"min_rank": 7, "max_rank": 10, "required_level": 16},
    ],
    "founders": {
        "technical": {"speed_percent": 15, "money_percent": 0, "staff_bonus": 0, "model_score_multiplier": 1.1},
        "business": {"speed_percent": 0, "money_percent": 20, "staff_bonus": 1, "model_score_multiplier": 1.0},
    },
    "blueprints": [
        {"id": "bp_tts_3b", "name": "3B TTS", "model_type": "tts", "score_min": 40, "score_max": 70},
        {"id": "bp_vlm_7b", "name": "7B VLM", "model_type": "vlm", "score_min": 55, "score_max": 85},
        {"id": "bp_llm_3b", "name": "3B LLM", "model_type": "llm", "score_min": 45, "score_max": 75},
        {"id": "bp_llm_17b", "name": "17B LLM", "model_type": "llm", "score_min": 65, "score_max": 95},
    ],
    "jobs": [
        # Training
        {"id": "job_train_tts_3b", "name": "Train 3B TTS", "duration_ms": 5 * MINUTE_MS,
         "base_cost": 500, "compute_cost": 1, "rewards": {"experience": 80, "research_points": 120},
         "requires_unlock": True, "effect": {"kind": "training", "blueprint_id": "bp_tts_3b"}},
        {"id": "job_train_vlm_7b", "name": "Train 7B VLM", "duration_ms": 12 * MINUTE_MS,
         "base_cost": 1200, "compute_cost": 1, "rewards": {"experience": 140, "research_points": 260},
         "min_level": 2, "requires_unlock": True, "effect": {"kind": "training", "blueprint_id": "bp_vlm_7b"}},
        {"id": "job_train_llm_3b", "name": "Train 3B LLM", "duration_ms": 8 * MINUTE_MS,
         "base_cost": 900, "compute_cost": 1, "rewards": {"experience": 120, "research_points": 200},
         "min_level": 3, "requires_unlock": True, "effect": {"kind": "training", "blueprint_id": "bp_llm_3b"}},
        {"id": "job_train_llm_17b", "name": "Train 17B LLM", "duration_ms": 20 * MINUTE_MS,
         "base_cost": 3000, "compute_cost": 2, "rewards": {"experience": 260, "research_points": 480},
         "min_level": 7, "requires_unlock": True, "effect": {"kind": "training", "blueprint_id": "bp_llm_17b"}},
        # Contracts
        {"id": "job_contract_blog_basic", "name": "Blog Post Batch", "duration_ms": 4 * MINUTE_MS,
         "compute_cost": 1, "rewards": {"money": 450, "experience": 60}, "requires_unlock": True,
         "effect": {"kind": "contract", "required_model_type": "llm"}},
        {"id": "job_contract_voice_pack", "name": "Voiceover Pack", "duration_ms": 4 * MINUTE_MS,
         "compute_cost": 1, "rewards": {"money": 520, "experience": 70}, "min_level": 2, "requires_unlock": True,
         "effect": {"kind": "contract", "required_model_type": "tts"}},
        {"id": "job_contract_image_qa", "name": "Image QA Contract", "duration_ms": 6 * MINUTE_MS,
         "compute_cost": 1, "rewards": {"money": 700, "experience": 90}, "min_level": 3, "requires_unlock": True,
         "effect": {"kind": "contract", "required_model_type": "vlm"}},
        {"id": "job_research_literature", "name": "Literature Sweep", "duration_ms": 3 * MINUTE_MS,
         "base_cost": 150, "rewards": {"experience": 40, "research_points": 60},
         "effect": {"kind": "contract"}},
        {"id": "job_freelance_gig", "name": "Freelance Gig", "duration_ms": 1 * MINUTE_MS,
         "rewards": {"money": 200, "experience": 15}, "cooldown_ms": 10 * MINUTE_MS,
         "effect": {"kind": "contract"}},
        # Temporary hires (bonus while working, permanent staff once done)
        {"id": "job_hire_junior_researcher", "name": "Hire Junior Researcher", "duration_ms": 10 * MINUTE_MS,
         "base_cost": 2000, "rewards": {"experience": 30}, "effect": {"kind": "hire", "stat": "speed", "bonus": 10}},
        {"id": "job_hire_sales_lead", "name": "Hire Sales Lead", "duration_ms": 15 * MINUTE_MS,
         "base_cost": 2500, "rewards": {"experience": 30}, "min_level": 2,
         "effect": {"kind": "hire", "stat": "money_multiplier", "bonus": 15}},
        {"id": "job_hire_ops_manager", "name": "Hire Ops Manager", "duration_ms": 15 * MINUTE_MS,
         "base_cost": 3000, "rewards": {"experience": 30}, "min_level": 4,
         "effect": {"kind": "hire", "stat": "queue", "bonus": 1}},
    ],
    "research_nodes": [
        # Starters (auto-granted)
        {"id": "rn_cap_contracts_basic", "category": "capability", "name": "Basic Contracts",
         "description": "Unlock simple paid contracts in Operate.", "cost_rp": 0,
         "unlocks": {"job_ids": ["job_contract_blog_basic"]}},
        {"id": "rn_bp_unlock_tts_3b", "category": "blueprint", "name": "3B TTS Blueprint",
         "description": "Unlock training for 3B TTS.", "cost_rp": 0,
         "unlocks": {"blueprint_ids": ["bp_tts_3b"], "job_ids": ["job_train_tts_3b"]}},
        # Early progression
        {"id": "rn_perk_research_speed_1", "category": "perk", "name": "Research Speed I",
         "description": "Finish jobs a bit faster.", "cost_rp": 120, "duration_ms": 2 * MINUTE_MS,
         "reward_xp": 20, "unlocks": {"perk_type": "speed", "perk_value": 10}},
        {"id": "rn_bp_unlock_vlm_7b", "category": "blueprint", "name": "7B VLM Blueprint",
         "description": "Unlock training for 7B VLM.", "cost_rp": 250, "min_level": 2,
         "duration_ms": 3 * MINUTE_MS, "reward_xp": 30,
         "unlocks": {"blueprint_ids": ["bp_vlm_7b"], "job_ids": ["job_train_vlm_7b"]}},
        {"id": "rn_cap_contracts_voice", "category": "capability", "name": "Voice Gigs",
         "description": "Unlock audio contracts that use your TTS models.", "cost_rp": 200, "min_level": 2,
         "duration_ms": 3 * MINUTE_MS, "reward_xp": 25, "unlocks": {"job_ids": ["job_contract_voice_pack"]}},
        {"id": "rn_cap_contracts_vision", "category": "capability", "name": "Vision Contracts",
         "description": "Unlock image QA contracts that use your VLM models.", "cost_rp": 220, "min_level": 3,
         "prerequisites": ["rn_bp_unlock_vlm_7b"], "duration_ms": 3 * MINUTE_MS, "reward_xp": 25,
         "unlocks": {"job_ids": ["job_contract_image_qa"]}},
        {"id": "rn_bp_unlock_llm_3b", "category": "blueprint", "name": "3B LLM Blueprint",
         "description": "Unlock training for 3B LLM.", "cost_rp": 350, "min_level": 3,
         "duration_ms": 4 * MINUTE_MS, "reward_xp": 35,
         "unlocks": {"blueprint_ids": ["bp_llm_3b"], "job_ids": ["job_train_llm_3b"]}},
        {"id": "rn_perk_money_multiplier_1", "category": "perk", "name": "Payout Booster I",
         "description": "Earn a bit more money from contracts.", "cost_rp": 180, "min_level": 3,
         "duration_ms": 3 * MINUTE_MS, "reward_xp": 20,
         "unlocks": {"perk_type": "money_multiplier", "perk_value": 10}},
        # Mid game
        {"id": "rn_bp_unlock_llm_17b", "category": "blueprint", "name": "17B LLM Blueprint",
         "description": "Unlock training for 17B LLM.", "cost_rp": 900, "min_level": 7,
         "prerequisites": ["rn_bp_unlock_llm_3b"], "duration_ms": 8 * MINUTE_MS, "reward_xp": 60,
         "unlocks": {"blueprint_ids": ["bp_llm_17b"], "job_ids": ["job_train_llm_17b"]}},
        {"id": "rn_cap_model_publishing", "category": "capability", "name": "Model Publishing",
         "description": "Publish models to the public lab and world rankings.", "cost_rp": 250, "min_level": 4,
         "duration_ms": 3 * MINUTE_MS, "reward_xp": 30, "unlocks": {"system_flags": ["publishing"]}},
        {"id": "rn_cap_model_api_income", "category": "capability", "name": "Model API Income",
         "description": "Earn passive money from hosted model APIs.", "cost_rp": 350, "min_level": 5,
         "prerequisites": ["rn_cap_model_publishing"], "duration_ms": 5 * MINUTE_MS, "reward_xp": 40,
         "unlocks": {"system_flags": ["model_api_income"]}},
    ],
    "inbox_events": [
        {"event_id": "evt_first_level_up", "trigger": "first_level_up",
         "title": "Level Up! Upgrade Points Unlocked",
         "message": "You earned UP from leveling. Spend them in Lab > Upgrades to increase your queue, "
                    "staff, or compute capacity.",
         "deep_link": {"view": "lab", "target": "upgrades"}},
        {"event_id": "evt_first_research", "trigger": "first_research", "title": "Research Unlocked!",
         "message": "Use Research Points to unlock new models, capabilities, and perks.",
         "deep_link": {"view": "research"}},
        {"event_id": "evt_first_model", "trigger": "first_model", "title": "First Model Trained!",
         "message": "Your model is now in Lab > Models. Train more versions to improve scores, "
                    "or use it for contracts.",
         "deep_link": {"view": "lab", "target": "models"}},
        {"event_id": "evt_publishing_unlocked", "trigger": "publishing_unlocked", "title": "Publishing Unlocked!",
         "message": "You can now publish models to compete on the World leaderboards.",
         "deep_link": {"view": "lab", "target": "models"}},
        {"event_id": "evt_level_5", "trigger": "level_5", "title": "Passive Income Available",
         "message": "At level 5 you can unlock Model API Income in Research.",
         "deep_link": {"view": "research"}},
    ],
}

"""Quiz rules: turn coordination, scoring, the game registry and answer timers.

Routes and socket handlers call into these modules; nothing here touches
Flask request state or the LLM backends directly.
"""

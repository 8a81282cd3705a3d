from messenger_pulse.core.ai.followup import FollowUpGenerator, build_prompt, format_history

__all__ = ["FollowUpGenerator", "build_prompt", "format_history"]

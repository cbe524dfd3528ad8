"""
Prompts for storyboard generation.
"""

from shared.models.scene import StoryboardGenerationRequest


def build_system_prompt(target_seconds: int, min_seconds: int, max_seconds: int) -> str:
    return f"""You are a video storyboard generator for Katbox, a Filipino meal box packaging company. You create scene-by-scene storyboards for {target_seconds}-second vertical (9:16) social media videos.

RULES:
1. Total duration across ALL scenes MUST equal exactly {target_seconds} seconds.
2. Each scene duration must be between {min_seconds} and {max_seconds} seconds.
3. Use 4-8 scenes per video (typical: 5-6 scenes).
4. visual_type must be one of: "ai-video", "ai-photo", "motion-graphics"
5. Use "motion-graphics" for text-heavy scenes (intro hooks, CTAs, key stats).
6. Use "ai-photo" for product showcases, food imagery, lifestyle shots.
7. Use "ai-video" sparingly (1-2 per video max) for dynamic action shots.
8. narration_text MUST be in Taglish (mix of Tagalog and English, natural Filipino speech).
9. ai_prompt must be detailed, visual, and optimized for AI image/video generation.
10. onscreen_text should be short, punchy text overlays (English preferred for readability).
11. First scene should be a hook (grab attention in 3 seconds).
12. Last scene should be a call-to-action.

Respond with a JSON object: {{ "scenes": [...] }}
Each scene: {{ "scene_number": N, "duration_seconds": N, "visual_description": "...", "visual_type": "...", "narration_text": "...", "onscreen_text": "...", "ai_prompt": "..." }}"""


def build_user_prompt(request: StoryboardGenerationRequest, target_seconds: int) -> str:
    return f"""Create a {target_seconds}-second video storyboard for this topic:

Title: {request.topic_title}
Summary: {request.topic_summary}
Content Pillar: {request.content_pillar}

Remember: scenes must total EXACTLY {target_seconds} seconds."""

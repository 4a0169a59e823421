"""
提示词模板
"""

LOCATION_EXTRACTION_PROMPT = """Extract all geographic locations, points of interest, and destinations from the following text. For each location, provide:
1. The canonical name of the location
2. A brief description (1 sentence max)
3. The exact text mention from the input
4. If you're confident, provide approximate latitude and longitude

Return ONLY valid JSON in this format (no markdown, no explanation):
{{
  "locations": [
    {{
      "name": "Great Barrier Reef",
      "description": "World's largest coral reef system off the coast of Queensland, Australia",
      "raw_mention": "the Great Barrier Reef",
      "llm_lat": -18.2871,
      "llm_lon": 147.6992
    }}
  ]
}}

If no locations are found, return: {{"locations": []}}

TEXT TO ANALYZE:
{text}"""


def build_extraction_prompt(text: str) -> str:
    """构建地点提取提示词"""
    return LOCATION_EXTRACTION_PROMPT.format(text=text)

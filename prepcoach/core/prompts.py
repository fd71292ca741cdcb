"""
PrepCoach - Provider Prompts.

Templates sent to the text-generation provider. Each template names the
JSON shape it expects back; ProviderResponseParser enforces it.
"""

# -----------------------------------------------------------------------------
# Response Analysis
# -----------------------------------------------------------------------------

RESPONSE_ANALYSIS_PROMPT = """Analyze this interview response for real-time coaching.

Question: "{question}"
Response: "{spoken_text}"
Target Role: {role}
Industry: {industry}

IMPORTANT: Return ONLY a valid JSON object without any markdown formatting or code blocks.

Provide analysis as a clean JSON object:
{{
  "confidence": 85,
  "clarity": 90,
  "pace": 75,
  "keywordRelevance": 80,
  "suggestions": ["immediate tip 1", "immediate tip 2"],
  "strengths": ["what they did well"],
  "improvementAreas": ["what to improve"]
}}"""


# -----------------------------------------------------------------------------
# Instant Coaching Tips
# -----------------------------------------------------------------------------

COACHING_TIPS_PROMPT = """You are an expert interview coach providing real-time guidance.

Current Response: "{current_response}"
Target Role: {role}
Industry: {industry}

Provide 3 immediate, actionable coaching tips:
1. Focus on specific improvements for their current answer
2. Suggest relevant examples or metrics they should mention
3. Recommend how to structure the remainder of their response

Return only a JSON array of 3 short, actionable tips:
["tip1", "tip2", "tip3"]"""


# -----------------------------------------------------------------------------
# Question Generation
# -----------------------------------------------------------------------------

QUESTION_GENERATION_PROMPT = """Generate {count} personalized interview questions for a {role} position in the {industry} industry.

Requirements:
- Include a mix of: {question_types}
- Difficulty level: {difficulty}
- Make questions relevant to the specific role and industry
- Include helpful hints for each question
- Provide expected answer duration in seconds

Return as JSON array with this structure for each question:
{{
  "question": "The interview question text",
  "type": "behavioral|technical|situational|general",
  "difficulty": "{difficulty}",
  "expectedDuration": 120,
  "hints": ["hint 1", "hint 2", "hint 3"],
  "tags": ["tag1", "tag2", "tag3"],
  "followUpQuestions": ["optional follow-up question"]
}}

Return ONLY a valid JSON array of {count} questions."""


# -----------------------------------------------------------------------------
# Follow-Up Question
# -----------------------------------------------------------------------------

FOLLOW_UP_PROMPT = """As an expert interviewer, generate a thoughtful follow-up question.

Original Question: "{question}"
Candidate's Response: "{answer}"
Role: {role}
Industry: {industry}

Generate ONE follow-up question that:
1. Probes deeper into their experience
2. Asks for specific metrics or examples
3. Explores their problem-solving process
4. Is relevant to the role

Return only the follow-up question, no additional text."""

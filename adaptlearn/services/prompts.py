ANALYSIS_PROMPT = """You are an expert special education teacher and accessibility specialist.

Analyze the following educational content for a student with {disability}. \
Each line is prefixed with its line number. Return your analysis as a JSON object with this structure:
{{
  "summary": "2-4 sentences describing the overall accessibility of the content",
  "overallScore": 75,
  "recommendations": [
    "Specific recommendation 1",
    "Specific recommendation 2",
    "Specific recommendation 3",
    "Specific recommendation 4",
    "Specific recommendation 5"
  ],
  "lines": [
    {{
      "lineNumber": 1,
      "originalLine": "exact text from line",
      "suggestedChange": "improved accessible version",
      "reason": "detailed explanation of the problem",
      "strategy": "research-based teaching strategy",
      "severity": "low | medium | high"
    }}
  ],
  "suggestedImages": [
    {{
      "description": "what the image shows",
      "altText": "alternative text for the image",
      "placement": "before | after | beside",
      "questionNumber": null
    }}
  ]
}}

overallScore is an integer from 0 to 100. Only include lines that need a change.

Content to analyze:
{content}

Return ONLY the JSON object, no other text."""


EXAM_PROMPT = """You are an expert special education teacher who adapts exams for students with {disability}.

Rewrite the exam below so it is accessible for this student. Rules:
- Keep EXACTLY {question_count} questions, in the SAME order, with the same numbering.
- Do not add, remove, merge or split questions. Only change wording and framing.
- You may simplify language, break instructions into steps, or offer multiple-choice scaffolding.
- Suggest supportive images where they help, tied to a question number.

Return a JSON object with this structure:
{{
  "summary": "2-3 sentences describing the adaptations",
  "adaptedExam": "the full adapted exam text, one question per numbered line",
  "changesMade": 5,
  "recommendations": ["Recommendation 1", "Recommendation 2", "Recommendation 3"],
  "suggestedImages": [
    {{
      "description": "what the image shows",
      "altText": "alternative text for the image",
      "placement": "before | after | beside",
      "questionNumber": 1
    }}
  ]
}}

Exam:
{exam}

Return ONLY the JSON object, no other text."""


IDENTIFY_PROMPT = """You are an expert special education psychologist and disability specialist.

Based on the following student characteristics, identify the most likely potential disability \
or learning challenge. Provide a detailed explanation and recommendations for the teacher.

Student characteristics:
{characteristics}

Return your response as JSON with this structure:
{{
  "suggestedDisability": "Name of the most likely disability or learning challenge",
  "explanation": "Why the characteristics point to this disability",
  "recommendations": [
    "Specific recommendation 1 for supporting this student",
    "Specific recommendation 2",
    "Specific recommendation 3",
    "Specific recommendation 4",
    "Specific recommendation 5"
  ]
}}

Consider common disabilities such as:
- Dyslexia (reading difficulties)
- Dysgraphia (writing difficulties)
- Dyscalculia (math difficulties)
- ADHD (attention and hyperactivity issues)
- Autism Spectrum Disorder (social communication and behavior patterns)
- Visual Impairment
- Hearing Impairment
- Emotional/Behavioral Disorders
- Gifted and Talented (advanced learning needs)

Return ONLY the JSON object, no other text."""


def number_lines(lines) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))

from __future__ import annotations

PLANNER_SYSTEM_PROMPT = """You are an expert document editor.
You propose structural edits to a document as a JSON array of actions.
Return only the JSON array, no other text."""

PLANNER_PROMPT_TEMPLATE = """Analyze the following document and provide specific editing suggestions to improve clarity, readability, and effectiveness.

DOCUMENT PARAGRAPHS (only non-empty paragraphs shown):
{document_text}

Provide your response as a JSON array of editing actions. Each action uses one of these shapes:
{{"action": "modify", "targetSequentialNumber": N, "instruction": "...", "newContent": "...", "reason": "..."}}
{{"action": "insert", "afterSequentialNumber": N, "instruction": "...", "newContent": "...", "reason": "..."}}
{{"action": "delete", "targetSequentialNumber": N, "reason": "..."}}
{{"action": "move", "fromSequentialNumber": N, "toAfterSequentialNumber": M, "reason": "..."}}

IMPORTANT NOTES:
- Paragraph numbers start from 1 and only reference the paragraphs shown above
- Use afterSequentialNumber 0 to insert before the first paragraph
- For "modify" actions: "newContent" is the complete replacement text for the entire paragraph
- For "insert" actions: "newContent" is the complete new paragraph
- At most one in four actions may be a "delete"

Focus on:
1. Breaking down overly long sentences
2. Improving clarity and readability
3. Strengthening transitions between ideas
4. Removing redundancy
5. Enhancing overall flow

Limit your response to the {max_suggestions} most impactful suggestions. Return only the JSON array, no other text."""

CONTENT_SYSTEM_PROMPT = """You are a document editor writing a single paragraph.
Rules:
1. Output ONLY the paragraph text, nothing else
2. Do not add explanations, headings, quotes, or commentary
3. Preserve all numbers, citations, and proper nouns from the context
4. Match the tone and formality of the context"""

CONTENT_PROMPT_TEMPLATE = """Write the paragraph described by this instruction.

Instruction:
{instruction}

Context (existing paragraph):
{context}

Paragraph:"""

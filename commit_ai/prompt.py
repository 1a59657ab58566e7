PROMPT_TEMPLATE = """You are an expert software developer with a keen eye for writing clean, concise, and informative Git commit messages.
Analyze the following `git diff` of staged changes and write the commit message for it.

**Rules:**
* The first line is a single-line description of the change in the imperative mood, no longer than 72 characters. Do not use the word "summary" anywhere in it.
* If the diff adds new functions or methods, follow the first line with a blank line, then a line reading "Functions Added:" and one "- name" bullet per function.
* If the diff removes functions or methods, add a line reading "Functions Removed:" and one "- name" bullet per function.
* If no functions were added, leave out the "Functions Added:" section entirely. If no functions were removed, leave out the "Functions Removed:" section entirely. Never write "None" or an empty list.
* Output only the commit message: no code fences, no quotes, no explanations.

**Git diff:**
{diff}
"""


def build_prompt(diff_text: str) -> str:
    """Creates the full prompt to be sent to the AI model.

    The diff is inserted verbatim, so it appears unchanged as one contiguous
    block of the result.
    """
    return PROMPT_TEMPLATE.format(diff=diff_text)

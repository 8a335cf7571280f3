"""Enhanced prompt templates.

When enhanced prompting is requested, the user's prompt is wrapped in one of
two fixed templates that walk the model through a short plan before it emits
the image. The template is chosen by whether reference images accompany the
prompt. Templates are not user-configurable.
"""

PROMPT_PLACEHOLDER = "{prompt}"

WITH_IMAGES_TEMPLATE = """\
Create an image by following these steps.

Step 1: Analyze each attached reference image in order. For every image, note \
its subject, composition, colors, lighting, style and any distinctive features.

Step 2: Plan how the features you identified should be combined with the \
request below. Decide which elements to keep, which to adapt, and how they fit \
together in a single coherent scene.

Step 3: Generate the image according to your plan.

Request: {prompt}"""

NO_IMAGES_TEMPLATE = """\
Create an image by following these steps.

Step 1: Read the request below carefully and identify the subject, setting, \
style, mood and any specific details it asks for.

Step 2: Generate an image that satisfies every part of the request.

Request: {prompt}"""


def compose_prompt(prompt: str, has_reference_images: bool, use_enhanced: bool) -> str:
    """Build the instruction text sent to the provider.

    Args:
        prompt: User prompt
        has_reference_images: Whether reference images follow the text
        use_enhanced: Whether to wrap the prompt in a reasoning template

    Returns:
        The prompt unchanged when ``use_enhanced`` is False, otherwise the
        selected template with the prompt substituted verbatim
    """
    if not use_enhanced:
        return prompt

    template = WITH_IMAGES_TEMPLATE if has_reference_images else NO_IMAGES_TEMPLATE
    # str.replace keeps braces inside the prompt literal
    return template.replace(PROMPT_PLACEHOLDER, prompt, 1)

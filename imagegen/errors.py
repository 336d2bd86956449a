"""Errors raised by the tool workflows.

Upstream provider, storage and database errors are not wrapped; they reach
the agent with their original message.
"""


class ConfigurationError(ValueError):
    """Unknown or unimplemented provider/storage, or a missing setting."""


class GenerationNotFound(LookupError):
    def __init__(self, generation_id):
        super().__init__(f"Generation not found: {generation_id}")
        self.generation_id = generation_id


class InvalidImageIndex(ValueError):
    def __init__(self, index):
        super().__init__(f"Invalid image index: {index}")
        self.index = index


class PreviewMissing(FileNotFoundError):
    def __init__(self, path):
        super().__init__(f"Preview file not found: {path}")
        self.path = path


class GenerationAlreadySelected(ValueError):
    def __init__(self, generation_id, selected_index):
        super().__init__(
            f"Generation {generation_id} already has image {selected_index} "
            f"selected"
        )
        self.generation_id = generation_id
        self.selected_index = selected_index

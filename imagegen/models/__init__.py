from imagegen.models.generation import Generation, GenerationImage  # noqa: F401

"""Generation pipeline: context, model resolution, generation, parsing, apply, commit."""

"""Actor module: models, animation tables and per-instance playback.

sg_skeleton builds model node trees, sg_animation decodes animation
tables and frames, animation_runtime drives placed model instances.
"""

"""Manifest-driven asset generation pipeline.

One invocation claims the first pending asset of the manifest, turns it into
a category recipe, drives three calls against the remote authoring tool
(scene reset, geometry generation, export) and records the outcome back into
the manifest. The manifest JSON document is the only persistent state; it is
shared with the tools that author it, so its shape and ordering are kept
exactly as found.
"""

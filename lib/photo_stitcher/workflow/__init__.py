"""
Workflow package for the photo stitcher.

This package runs stitch jobs off the requesting thread and reports them as
tagged progress, notice and terminal messages.
"""

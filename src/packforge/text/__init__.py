"""Text cleanup, front-matter detection and segmentation."""

"""Marker protocol — sentinel-delimited generation units inside source files.

Generated regions are demarcated, in the comment syntax of the host file:
    // @codefactory:start factory="<generator>" id="<unit id>"
    ...generated text...
    // @codefactory:end

Anything outside these markers is preserved untouched.
"""

# Marker tags shared by dialects, producer and scanners
START_TAG = "@codefactory:start"
END_TAG = "@codefactory:end"

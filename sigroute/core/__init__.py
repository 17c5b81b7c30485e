"""sigroute core: tracing, history, dispatch, stage runner and entry point.

Every component here is rebuilt per invocation.  No module keeps state
between two invocations; the envelope is the only carrier.
"""

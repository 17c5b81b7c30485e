"""sigroute routing: channel naming, publish transport and log sinks.

The core never talks to a queue or log service directly.  It depends on
two narrow protocols:

- ``Publisher.publish(channel, payload)`` in ``sigroute.routing.transport``
- ``LogSink.write(record)`` in ``sigroute.routing.sinks``

Publishers are obtained from a factory on every publish so that no
client or connection outlives a single call.
"""

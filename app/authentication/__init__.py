"""
Identity for the messaging service.

Resolves requests to a User (JWT over HTTP, ?token= on websockets) and
exposes the public identity payload {id, name, image} embedded in chat,
presence and reel responses.
"""

"""
Services Package

This package contains business logic services that are:
- Separate from HTTP handling (routers)
- Reusable across different parts of the application
- Easier to test in isolation

Current services:
- identity.py: Who is acting (member id or hashed network address)
- store.py: Atomic write helper mapping database failures to domain errors
- votes.py: Upvote/downvote state machine and per-book tallies
- ratings.py: Rating summaries derived from reviews
- reviews.py: Review creation, editing and helpful marks
- comments.py: Threaded comments, likes and tree assembly
- oauth.py: OAuth social login (Google, GitHub)
- rate_limiter.py: Rate limiting with slowapi and Redis backend
- security.py: JWT token handling
"""

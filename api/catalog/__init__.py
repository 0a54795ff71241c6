"""
Read-only resolution over a package catalog.

`service` answers the resolver questions (latest bundle of a channel, what
replaces a bundle, which bundle provides an API); `repository` holds the SQL
behind each answer.
"""

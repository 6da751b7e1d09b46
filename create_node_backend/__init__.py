"""create-node-backend: interactive scaffolder for Node.js backend projects.

Asks for a project name, framework (express, fastify, hono), database
(mongodb, postgres, mysql, none) and language (TypeScript or JavaScript),
writes a ready-to-edit source tree and installs its npm dependencies.
"""

__version__ = "1.0.0"

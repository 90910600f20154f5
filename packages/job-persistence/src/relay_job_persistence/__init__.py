"""Job persistence: the database-backed collaborators handlers depend on.

JobPersistence tracks jobs and attempts, ConfigRepository reads connection
configuration and stores connection state, EnvSecretsHydrator resolves
secret references in connector configs. Handlers receive these as
constructor arguments, so tests substitute fakes freely.
"""

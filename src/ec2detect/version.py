baseVersion = '1.2.0'
version = '1.2.0-000'
distVersion = '1.2.0'
currentCommit = '000'
dirty = False

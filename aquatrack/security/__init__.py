# Roles and visibility scoping

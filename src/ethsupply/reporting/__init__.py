"""Report exports and figure builders."""

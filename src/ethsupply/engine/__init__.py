"""Supply engine: issuance, burn, daily projection and equilibrium."""

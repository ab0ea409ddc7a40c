"""HTTP adapter over the fee engine"""

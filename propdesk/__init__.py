"""
Property Desk - domain package
Author: Bryce Fountain | Skoll.dev

Records, calculators and the AI assistant behind the Streamlit views in tools/.
"""
__version__ = "1.0.0"

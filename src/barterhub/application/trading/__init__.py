"""Trade use cases"""

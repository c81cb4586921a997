# Utils module for scopemetrics

"""Run the code blocks of tutorial chapters and write the results back into the markdown."""

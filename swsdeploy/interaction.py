import sys

YES_NO_CHOICES = {"Yes": "y", "No": "n"}


def have_terminal() -> bool:
    """
    Returns True if both stdin and stdout are attached to a terminal.
    """
    return sys.stdin.isatty() and sys.stdout.isatty()


class TerminalIO:
    def output_line(self, line: str):
        print(line)

    def input_line(self, prompt: str) -> str:
        if not have_terminal():
            return ""
        return input(prompt)

    def prompt_choices(self, question: str, choices, default=None) -> str:
        """
        Use the 'choices' dict to present a list of choices to the user.
        If 'choices' is the class 'bool', then choices is defined to be
        {"Yes": "y", "No": "n"}.

        Returns the valid choice that the user made.  Re-prompts if an
        invalid choice is made.  If `default` is supplied, it will be returned
        if the terminal is not interactive, or if the user just hits enter.
        """
        if not have_terminal() and default:
            return default

        if choices == bool:
            choices = YES_NO_CHOICES

        while True:
            resp = input(self.generate_prompt_text(question, choices, default)).strip()
            if not resp and default:
                return default

            if resp in choices.values():
                return resp
            if resp:
                self.output_line(f"Invalid choice: {repr(resp)}")

    def prompt_user_for_confirmation(self, prompt_message, default="n") -> bool:
        """
        Prompts user with `prompt_message` and expects yes/no answer.
        """
        return self.prompt_choices(prompt_message, bool, default) == "y"

    @classmethod
    def generate_prompt_text(cls, question, choices, default=None) -> str:
        if choices == YES_NO_CHOICES:
            if default == "y":
                prompt = "[Y/n]"
            elif default == "n":
                prompt = "[y/N]"
            else:
                prompt = "[y/n]"
            return f"{question} {prompt}: "

        choices_text = ""
        for choice, key in choices.items():
            choices_text += f"[{key}] {choice}\n"
        default_text = f" (default: [{default}])" if default else ""

        return f"{choices_text}{question}{default_text}: "

"""Build Resolver Agent: asks the model to fix a compiler error in place."""

from .prompt import ChatPrompt, render_prompt


BUILD_RESOLVER_SYSTEM_PROMPT = (
    "Your task is to resolve compiler errors from the provided code. You must generate complete "
    "smart contract code exclusively without any explanatory or conversational text. You must not "
    "change any other parts of the code that are not related to solving the compiler error. You "
    "must provide back full code that compiles, not only the parts that need to be fixed."
)

BUILD_RESOLVER_USER_TEMPLATE = 'Resolve the compiler error "{compiler_error}" from the following code: \n {code}'


def create_build_resolution_prompt(code: str, compiler_error: str) -> ChatPrompt:
    return render_prompt(
        BUILD_RESOLVER_SYSTEM_PROMPT,
        BUILD_RESOLVER_USER_TEMPLATE,
        code=code,
        compiler_error=compiler_error,
    )
